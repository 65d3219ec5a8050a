# Admin service module: user moderation and dashboard statistics
import logging
from datetime import datetime
from sqlalchemy import func
from agrilink import db
from agrilink.errors import NotFound, ValidationError
from agrilink.models.order_model import Order, OrderStatus
from agrilink.models.product_model import Product, ProductStatus
from agrilink.models.user_model import User, Role, Availability
from agrilink.services.product_service import format_product, parse_product_status

logger = logging.getLogger(__name__)


def _parse_role(value):
    try:
        return Role(value)
    except ValueError:
        raise ValidationError(f'Invalid user type: {value}')


def get_users(role=None):
    query = User.query
    if role:
        query = query.filter(User.role == _parse_role(role))
    users = query.order_by(User.created_at.desc(), User.id.desc()).all()
    return [u.to_dict() for u in users]


def get_products(status=None):
    query = Product.query
    if status:
        query = query.filter(Product.status == parse_product_status(status))
    products = query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    return [format_product(p, farmer_contact=True) for p in products]


def get_user_or_404(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound('User not found')
    return user


def approve_farmer(user_id):
    user = get_user_or_404(user_id)
    if user.role != Role.FARMER:
        raise ValidationError('Only farmer accounts require approval')
    user.approved = True
    user.approved_at = datetime.utcnow()
    db.session.commit()
    logger.info(f'Farmer {user.id} approved')
    return user


def set_suspended(user_id, suspended):
    user = get_user_or_404(user_id)
    user.suspended = suspended
    db.session.commit()
    logger.info(f"User {user.id} {'suspended' if suspended else 'unsuspended'}")
    return user


def delete_user(user_id, admin):
    if user_id == admin.id:
        raise ValidationError('You cannot delete your own account.')
    user = get_user_or_404(user_id)
    db.session.delete(user)
    db.session.commit()
    logger.info(f'User {user_id} deleted by admin {admin.id}')


def get_dashboard_stats():
    status_counts = dict(db.session.query(Order.status, func.count(Order.id)).group_by(Order.status).all())
    return {
        'total_users': User.query.count(),
        'total_products': Product.query.count(),
        'total_orders': Order.query.count(),
        'pending_farmers': User.query.filter_by(role=Role.FARMER, approved=False).count(),
        'pending_products': Product.query.filter_by(status=ProductStatus.PENDING).count(),
        'active_farmers': User.query.filter_by(role=Role.FARMER, approved=True).count(),
        'available_delivery': User.query.filter_by(role=Role.DELIVERY, availability_status=Availability.AVAILABLE).count(),
        'orders_by_status': {status.value: status_counts.get(status, 0) for status in OrderStatus},
        'total_revenue': float(db.session.query(func.coalesce(func.sum(Order.total_price), 0))
                               .filter(Order.status == OrderStatus.DELIVERED).scalar() or 0)
    }
