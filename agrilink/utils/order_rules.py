# agrilink/utils/order_rules.py
"""Status graph and role checks shared by the order and delivery services."""
from agrilink.errors import Forbidden, InvalidState, ValidationError
from agrilink.models.order_model import OrderStatus
from agrilink.models.user_model import Role

ALLOWED_TRANSITIONS = {
    OrderStatus.NEW: {OrderStatus.PROCESSING, OrderStatus.ASSIGNED, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.ASSIGNED, OrderStatus.CANCELLED},
    OrderStatus.ASSIGNED: {OrderStatus.PROCESSING, OrderStatus.PICKED_UP, OrderStatus.CANCELLED},
    OrderStatus.PICKED_UP: {OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})
BUYER_CANCELLABLE_STATUSES = frozenset({OrderStatus.NEW, OrderStatus.PROCESSING})
DELIVERY_STATUSES = (OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT, OrderStatus.DELIVERED)
ACTIVE_DELIVERY_STATUSES = (OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.IN_TRANSIT)


def parse_status(value, allowed=None):
    """Turn a wire value into an OrderStatus, optionally restricted to `allowed`."""
    try:
        status = OrderStatus(value)
    except ValueError:
        status = None
    if status is None or (allowed is not None and status not in allowed):
        choices = ', '.join(s.value for s in (allowed or OrderStatus))
        raise ValidationError(f'Invalid status. Must be one of: {choices}')
    return status


def can_view_order(order, user):
    if user.role == Role.ADMIN:
        return True
    return user.id in (order.buyer_id, order.farmer_id, order.delivery_person_id)


def check_update_authorization(order, user, new_status):
    """Raise Forbidden unless `user` may move `order` to `new_status`."""
    role = user.role
    if role == Role.ADMIN:
        return
    if role == Role.FARMER and order.farmer_id == user.id:
        if not user.approved:
            raise Forbidden('Your farmer account is pending admin approval.')
        return
    if role == Role.BUYER and order.buyer_id == user.id and new_status == OrderStatus.CANCELLED:
        return
    if role == Role.DELIVERY and order.delivery_person_id is not None and order.delivery_person_id == user.id:
        return
    raise Forbidden('Access denied')


def check_transition(order, new_status, user=None):
    """Raise InvalidState when the order cannot move to `new_status`.

    Terminal orders never move. Admins may jump between non-terminal
    statuses; everyone else follows ALLOWED_TRANSITIONS, and buyers may only
    cancel while the order has not been dispatched.
    """
    current = order.status
    if current in TERMINAL_STATUSES:
        raise InvalidState(f'Order is already {current.value}')
    if new_status == current:
        raise InvalidState(f'Order is already {current.value}')
    if user is not None and user.role == Role.ADMIN:
        return
    if user is not None and user.role == Role.BUYER and current not in BUYER_CANCELLABLE_STATUSES:
        raise InvalidState('Order cannot be cancelled in current status')
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidState(f'Invalid status transition from {current.value} to {new_status.value}')
