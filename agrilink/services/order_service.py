# Order service module for business logic
import logging
from flask import current_app
from agrilink import db
from agrilink.errors import Forbidden, InvalidState, NotFound, ValidationError
from agrilink.models.order_model import Order, OrderStatus
from agrilink.models.product_model import Product, ProductStatus
from agrilink.services.delivery_service import auto_assign_delivery, check_assignable, get_order_or_404
from agrilink.services.status_service import apply_transition
from agrilink.utils.order_rules import (
    BUYER_CANCELLABLE_STATUSES, can_view_order, check_transition, check_update_authorization, parse_status
)
from agrilink.utils.util import parse_number

logger = logging.getLogger(__name__)


def _purchasable_product(product_id):
    return Product.query.filter_by(id=product_id, status=ProductStatus.APPROVED, available=True).first()


def create_order(data, buyer):
    """Place an order for one product; the display price is frozen on the order."""
    product_id = data.get('productId')
    if not product_id or not data.get('quantity'):
        raise ValidationError('Please provide product ID and quantity')
    quantity = parse_number(data['quantity'], 'quantity', allow_zero=False)

    product = _purchasable_product(product_id)
    if not product:
        raise NotFound('Product not found or not available')

    order = Order(
        product_id=product.id,
        buyer_id=buyer.id,
        farmer_id=product.farmer_id,
        product_name=product.title,
        quantity=quantity,
        price_per_kg=product.display_price,
        total_price=round(product.display_price * quantity, 2),
        delivery_address=data.get('deliveryAddress'),
        delivery_location=data.get('deliveryLocation'),
        special_instructions=data.get('specialInstructions'),
        status=OrderStatus.NEW
    )
    db.session.add(order)
    db.session.commit()
    logger.info(f'Order {order.id} created for buyer {buyer.id}, total {order.total_price}')

    if current_app.config.get('AUTO_ASSIGN_DELIVERY'):
        try_auto_assign(order, order.delivery_location or product.location)
    return order


def try_auto_assign(order, location=None):
    """Best-effort dispatch: any failure here is logged and never fails the caller."""
    try:
        return auto_assign_delivery(order, location)
    except Exception:
        db.session.rollback()
        logger.exception(f'Auto-assign delivery failed for order {order.id}')
        return None


def get_buyer_orders(buyer_id):
    orders = Order.query.filter_by(buyer_id=buyer_id).order_by(Order.created_at.desc(), Order.id.desc()).all()
    return [o.to_dict() for o in orders]


def get_farmer_orders(farmer_id):
    orders = Order.query.filter_by(farmer_id=farmer_id).order_by(Order.created_at.desc(), Order.id.desc()).all()
    return [o.to_dict() for o in orders]


def get_all_orders(status=None):
    query = Order.query
    if status:
        query = query.filter(Order.status == parse_status(status))
    return [o.to_dict() for o in query.order_by(Order.created_at.desc(), Order.id.desc()).all()]


def get_order(order_id, user):
    order = get_order_or_404(order_id)
    if not can_view_order(order, user):
        raise Forbidden('Access denied')
    return order


def update_order_status(order_id, status_value, user):
    new_status = parse_status(status_value)
    order = get_order_or_404(order_id)
    check_update_authorization(order, user, new_status)
    check_transition(order, new_status, user)
    if new_status == OrderStatus.ASSIGNED and order.delivery_person_id is None:
        raise InvalidState('Order has no delivery person; use the assignment endpoints to dispatch it')
    apply_transition(order, new_status)
    db.session.commit()
    return order


def cancel_order(order_id, buyer):
    order = Order.query.filter_by(id=order_id, buyer_id=buyer.id).first()
    if not order:
        raise NotFound('Order not found')
    if order.status not in BUYER_CANCELLABLE_STATUSES:
        raise InvalidState('Order cannot be cancelled in current status')
    apply_transition(order, OrderStatus.CANCELLED)
    db.session.commit()
    logger.info(f'Order {order.id} cancelled by buyer {buyer.id}')
    return order
