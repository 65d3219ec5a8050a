# Delivery service module: matching orders to couriers and tracking assignments
import logging
from datetime import datetime
from flask import current_app
from sqlalchemy import func
from agrilink import db
from agrilink.errors import InvalidState, NotFound, ValidationError
from agrilink.models.delivery_model import DeliveryAssignment, AssignmentStatus, AssignmentType
from agrilink.models.order_model import Order, OrderStatus
from agrilink.models.user_model import User, Role, Availability
from agrilink.services.status_service import apply_transition, get_active_assignment, release_delivery_person
from agrilink.utils.order_rules import (
    ACTIVE_DELIVERY_STATUSES, DELIVERY_STATUSES, TERMINAL_STATUSES, check_transition, parse_status
)
from agrilink.utils.util import parse_number

logger = logging.getLogger(__name__)

ASSIGNABLE_ORDER_STATUSES = (OrderStatus.NEW, OrderStatus.PROCESSING)


def _available_couriers(location):
    """Approved, active couriers whose location string equals `location`, in id order."""
    return (User.query
            .filter(User.role == Role.DELIVERY,
                    User.availability_status == Availability.AVAILABLE,
                    User.approved.is_(True),
                    User.suspended.is_(False),
                    User.location == location)
            .order_by(User.id)
            .with_for_update(skip_locked=True)
            .all())


def _claim(person):
    """Flip a courier from available to busy; False if someone else got there first."""
    claimed = (User.query
               .filter(User.id == person.id, User.availability_status == Availability.AVAILABLE)
               .update({User.availability_status: Availability.BUSY}, synchronize_session=False))
    if claimed:
        person.availability_status = Availability.BUSY
    return bool(claimed)


def _attach(order, person, assignment_type, location, delivery_fee, notes=None):
    order.delivery_person_id = person.id
    apply_transition(order, OrderStatus.ASSIGNED)
    assignment = DeliveryAssignment(
        order_id=order.id,
        delivery_person_id=person.id,
        assignment_type=assignment_type,
        delivery_location=location,
        delivery_fee=delivery_fee,
        notes=notes,
        status=AssignmentStatus.ASSIGNED,
        assigned_at=order.assigned_at
    )
    db.session.add(assignment)
    return assignment


def _is_assignable(order):
    return (order.status in ASSIGNABLE_ORDER_STATUSES
            and order.delivery_person_id is None
            and get_active_assignment(order) is None)


def check_assignable(order):
    """Raise InvalidState unless `order` is waiting for a courier."""
    if not _is_assignable(order):
        raise InvalidState(f'Order cannot be assigned in current status ({order.status.value})')


def auto_assign_delivery(order, location=None):
    """Match `order` to the first available courier at `location`.

    Returns the new assignment, or None when nobody matches. Falls back to the
    order's delivery location and then the product's location.
    """
    if not _is_assignable(order):
        logger.info(f'Order {order.id} is not assignable (status {order.status.value})')
        return None
    location = location or order.delivery_location or (order.product.location if order.product else None)
    if not location:
        logger.warning(f'No delivery location for order {order.id}, skipping auto-assignment')
        return None

    for candidate in _available_couriers(location):
        if _claim(candidate):
            assignment = _attach(order, candidate, AssignmentType.AUTOMATIC, location,
                                 current_app.config.get('DEFAULT_DELIVERY_FEE', 0.0))
            db.session.commit()
            logger.info(f'Order {order.id} auto-assigned to delivery person {candidate.id}')
            return assignment

    db.session.rollback()
    logger.warning(f'No available delivery personnel found for order {order.id} at {location}')
    return None


def get_order_or_404(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFound('Order not found')
    return order


def manual_assign(order_id, data):
    """Admin dispatch of a specific courier to an order."""
    person_id = data.get('deliveryPersonId')
    if not person_id:
        raise ValidationError('Please provide deliveryPersonId')
    order = get_order_or_404(order_id)
    check_assignable(order)

    person = db.session.get(User, person_id)
    if not person:
        raise NotFound('Delivery person not found')
    if person.role != Role.DELIVERY:
        raise ValidationError('User is not a delivery person')
    if not person.approved or person.suspended:
        raise InvalidState('Delivery person account is not active')
    if not _claim(person):
        raise InvalidState('Delivery person is not available')

    fee = data.get('deliveryFee')
    fee = parse_number(fee, 'deliveryFee', minimum=0) if fee is not None else current_app.config.get('DEFAULT_DELIVERY_FEE', 0.0)
    location = order.delivery_location or (order.product.location if order.product else None)
    assignment = _attach(order, person, AssignmentType.MANUAL, location, fee, data.get('notes'))
    db.session.commit()
    logger.info(f'Order {order.id} manually assigned to delivery person {person.id}')
    return assignment


def update_delivery_status(order_id, status_value, person):
    order = Order.query.filter_by(id=order_id, delivery_person_id=person.id).first()
    if not order:
        raise NotFound('Delivery not found or not assigned to you')
    new_status = parse_status(status_value, allowed=DELIVERY_STATUSES)
    check_transition(order, new_status)
    apply_transition(order, new_status)
    db.session.commit()
    return order


def _get_own_assignment(assignment_id, person):
    assignment = DeliveryAssignment.query.filter_by(id=assignment_id, delivery_person_id=person.id).first()
    if not assignment:
        raise NotFound('Assignment not found')
    return assignment


def accept_assignment(assignment_id, person):
    assignment = _get_own_assignment(assignment_id, person)
    if assignment.status != AssignmentStatus.ASSIGNED or assignment.order.status in TERMINAL_STATUSES:
        raise InvalidState(f'Assignment cannot be accepted in current status ({assignment.status.value})')
    assignment.status = AssignmentStatus.ACCEPTED
    assignment.accepted_at = datetime.utcnow()
    db.session.commit()
    logger.info(f'Assignment {assignment.id} accepted by delivery person {person.id}')
    return assignment


def reject_assignment(assignment_id, person):
    """Hand the order back for re-assignment and free the courier."""
    assignment = _get_own_assignment(assignment_id, person)
    order = assignment.order
    if not assignment.is_active or order.status in TERMINAL_STATUSES:
        raise InvalidState(f'Assignment cannot be rejected in current status ({assignment.status.value})')
    if order.status not in (OrderStatus.NEW, OrderStatus.PROCESSING, OrderStatus.ASSIGNED):
        raise InvalidState('Order has already been picked up')
    assignment.status = AssignmentStatus.REJECTED
    if order.delivery_person_id == person.id:
        apply_transition(order, OrderStatus.PROCESSING)
    else:
        release_delivery_person(person.id)
    db.session.commit()
    logger.info(f'Assignment {assignment.id} rejected by delivery person {person.id}, order {order.id} back to processing')
    return assignment


def set_availability(person, status_value):
    try:
        status = Availability(status_value)
    except ValueError:
        raise ValidationError('Invalid status. Must be: available, busy, or offline')
    person.availability_status = status
    db.session.commit()
    logger.info(f'Delivery person {person.id} is now {status.value}')
    return status


def format_delivery(order):
    data = order.to_dict()
    assignment = (DeliveryAssignment.query
                  .filter_by(order_id=order.id, delivery_person_id=order.delivery_person_id)
                  .order_by(DeliveryAssignment.id.desc())
                  .first())
    data['assignment_id'] = assignment.id if assignment else None
    data['assignment_status'] = assignment.status.value if assignment else None
    data['assignment_type'] = assignment.assignment_type.value if assignment else None
    data['delivery_fee'] = assignment.delivery_fee if assignment else None
    data['notes'] = assignment.notes if assignment else None
    if order.buyer:
        data['buyer_location'] = order.buyer.location
    if order.farmer:
        data['farmer_location'] = order.farmer.location
    return data


def get_my_deliveries(person):
    orders = (Order.query.filter_by(delivery_person_id=person.id)
              .order_by(Order.created_at.desc(), Order.id.desc()).all())
    return [format_delivery(o) for o in orders]


def get_delivery_stats(person):
    base = Order.query.filter_by(delivery_person_id=person.id)
    earnings = (db.session.query(func.coalesce(func.sum(DeliveryAssignment.delivery_fee), 0))
                .filter(DeliveryAssignment.delivery_person_id == person.id,
                        DeliveryAssignment.status == AssignmentStatus.COMPLETED)
                .scalar())
    return {
        'total_deliveries': base.count(),
        'completed_deliveries': base.filter(Order.status == OrderStatus.DELIVERED).count(),
        'active_deliveries': base.filter(Order.status.in_(ACTIVE_DELIVERY_STATUSES)).count(),
        'total_earnings': float(earnings or 0)
    }
