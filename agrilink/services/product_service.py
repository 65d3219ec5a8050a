# Product service module for business logic
import logging
from datetime import datetime
from dateutil.parser import isoparse
from agrilink import db
from agrilink.errors import Forbidden, NotFound, ValidationError
from agrilink.models.product_model import Product, ProductStatus
from agrilink.utils.util import parse_number

logger = logging.getLogger(__name__)

# Placeholder until reviews exist
FARMER_RATING = 4.5


def calculate_prices_with_fee(base_price, fee_percentage):
    """Split a farmer's base price into fee and buyer-facing display price."""
    base_price = float(base_price)
    fee_percentage = float(fee_percentage)
    return {
        'base_price': round(base_price, 2),
        'service_fee': round(base_price * fee_percentage / 100, 2),
        'display_price': round(base_price * (1 + fee_percentage / 100), 2),
        'service_fee_percentage': fee_percentage
    }


def apply_pricing(product, base_price, fee_percentage):
    prices = calculate_prices_with_fee(base_price, fee_percentage)
    product.base_price = prices['base_price']
    product.service_fee_percentage = prices['service_fee_percentage']
    product.service_fee = prices['service_fee']
    product.display_price = prices['display_price']
    return prices


def format_product(product, farmer_contact=False):
    farmer = product.farmer
    data = {
        'id': product.id,
        'farmer_id': product.farmer_id,
        'title': product.title,
        'description': product.description,
        'category': product.category,
        'base_price': product.base_price,
        'service_fee_percentage': product.service_fee_percentage,
        'service_fee': product.service_fee,
        'display_price': product.display_price,
        'quantity': product.quantity,
        'location': product.location,
        'harvest_date': product.harvest_date.isoformat() if product.harvest_date else None,
        'organic': product.organic,
        'certified': product.certified,
        'images': list(product.images or []),
        'status': product.status.value,
        'rejection_reason': product.rejection_reason,
        'available': product.available,
        'approved_at': product.approved_at.isoformat() if product.approved_at else None,
        'created_at': product.created_at.isoformat() if product.created_at else None,
        'updated_at': product.updated_at.isoformat() if product.updated_at else None,
    }
    if farmer:
        data['farmer'] = {
            'id': farmer.id,
            'name': farmer.name,
            'phone': farmer.phone,
            'location': farmer.location,
            'rating': FARMER_RATING
        }
        if farmer_contact:
            data['farmer']['email'] = farmer.email
    return data


def _parse_harvest_date(value):
    if not value:
        return None
    try:
        return isoparse(str(value)).date()
    except ValueError:
        raise ValidationError('harvestDate must be an ISO date (YYYY-MM-DD)')


def _parse_images(value):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
        raise ValidationError('images must be a list of URLs')
    return value


def parse_product_status(value):
    try:
        return ProductStatus(value)
    except ValueError:
        raise ValidationError(f'Invalid product status: {value}')


def get_all_products(category=None, location=None, status=ProductStatus.APPROVED.value):
    query = Product.query.filter(Product.available.is_(True))
    if status:
        query = query.filter(Product.status == parse_product_status(status))
    if category:
        query = query.filter(Product.category == category)
    if location:
        query = query.filter(Product.location == location)
    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return [format_product(p) for p in products]


def get_farmer_products(farmer_id):
    products = Product.query.filter_by(farmer_id=farmer_id).order_by(Product.created_at.desc(), Product.id.desc()).all()
    return [format_product(p) for p in products]


def get_product_or_404(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFound('Product not found')
    return product


def create_product(data, farmer, fee_percentage):
    if not all(data.get(k) for k in ('title', 'category', 'basePrice', 'quantity')):
        raise ValidationError('Please provide all required fields')
    base_price = parse_number(data['basePrice'], 'basePrice', allow_zero=False)
    quantity = parse_number(data['quantity'], 'quantity', allow_zero=False)

    product = Product(
        farmer_id=farmer.id,
        title=data['title'],
        description=data.get('description') or '',
        category=data['category'],
        quantity=quantity,
        location=data.get('location') or farmer.location,
        harvest_date=_parse_harvest_date(data.get('harvestDate')),
        organic=bool(data.get('organic')),
        certified=bool(data.get('certified')),
        images=_parse_images(data.get('images')),
        status=ProductStatus.PENDING
    )
    prices = apply_pricing(product, base_price, fee_percentage)
    db.session.add(product)
    db.session.commit()
    logger.info(f'Product {product.id} created by farmer {farmer.id}, display price {product.display_price}')
    return product, prices


def _check_owner(product, farmer, action):
    if product.farmer_id != farmer.id:
        raise Forbidden(f'You can only {action} your own products')


def update_product(product_id, data, farmer, fee_percentage=None):
    """Apply the supplied fields; a new basePrice re-snapshots `fee_percentage`."""
    product = get_product_or_404(product_id)
    _check_owner(product, farmer, 'update')

    updated = False
    if data.get('title'):
        product.title = data['title']
        updated = True
    if data.get('description'):
        product.description = data['description']
        updated = True
    if data.get('quantity'):
        product.quantity = parse_number(data['quantity'], 'quantity', allow_zero=False)
        updated = True
    if data.get('basePrice'):
        if fee_percentage is None:
            raise ValueError('fee_percentage is required when repricing')
        apply_pricing(product, parse_number(data['basePrice'], 'basePrice', allow_zero=False), fee_percentage)
        updated = True
    if data.get('location'):
        product.location = data['location']
        updated = True
    if 'available' in data and data['available'] is not None:
        product.available = bool(data['available'])
        updated = True
    if data.get('images'):
        product.images = _parse_images(data['images'])
        updated = True

    if not updated:
        raise ValidationError('No fields to update')

    product.updated_at = datetime.utcnow()
    db.session.commit()
    logger.info(f'Product {product.id} updated by farmer {farmer.id}')
    return product


def delete_product(product_id, farmer):
    product = get_product_or_404(product_id)
    _check_owner(product, farmer, 'delete')
    db.session.delete(product)
    db.session.commit()
    logger.info(f'Product {product_id} deleted by farmer {farmer.id}')


def set_product_status(product_id, status, reason=None):
    """Admin moderation: approve, reject (with reason) or suspend a listing."""
    product = get_product_or_404(product_id)
    product.status = status
    if status == ProductStatus.APPROVED:
        product.approved_at = datetime.utcnow()
        product.rejection_reason = None
    elif status == ProductStatus.REJECTED:
        product.rejection_reason = reason or 'No reason provided'
    db.session.commit()
    logger.info(f'Product {product_id} set to {status.value}')
    return product


def admin_delete_product(product_id):
    product = get_product_or_404(product_id)
    db.session.delete(product)
    db.session.commit()
    logger.info(f'Product {product_id} deleted by admin')


