# Status service: writes shared by order transitions and delivery updates.
# Nothing here commits; callers commit once so a transition and its
# availability/assignment side effects land in the same transaction.
import logging
from datetime import datetime
from agrilink import db
from agrilink.models.delivery_model import DeliveryAssignment, AssignmentStatus, ACTIVE_ASSIGNMENT_STATUSES
from agrilink.models.order_model import OrderStatus
from agrilink.models.user_model import User, Availability

logger = logging.getLogger(__name__)

# Orders in these statuses wait for dispatch and carry no courier
UNDISPATCHED_STATUSES = (OrderStatus.NEW, OrderStatus.PROCESSING)


def get_active_assignment(order):
    return (DeliveryAssignment.query
            .filter(DeliveryAssignment.order_id == order.id,
                    DeliveryAssignment.status.in_(ACTIVE_ASSIGNMENT_STATUSES))
            .order_by(DeliveryAssignment.id.desc())
            .first())


def release_delivery_person(person_id):
    """Put a delivery person back into the pool of assignable couriers."""
    if person_id is None:
        return
    person = db.session.get(User, person_id)
    if person is None:
        return
    person.availability_status = Availability.AVAILABLE
    logger.info(f'Delivery person {person_id} released')


def end_active_assignment(order, status, now=None):
    assignment = get_active_assignment(order)
    if assignment is not None:
        assignment.status = status
        if status == AssignmentStatus.COMPLETED:
            assignment.completed_at = now or datetime.utcnow()
    return assignment


def unassign_delivery_person(order):
    """Hand the order back for dispatch: end its assignment and free the courier."""
    end_active_assignment(order, AssignmentStatus.REJECTED)
    release_delivery_person(order.delivery_person_id)
    logger.info(f'Order {order.id} unassigned from delivery person {order.delivery_person_id}')
    order.delivery_person_id = None


def apply_transition(order, new_status):
    """Set the status, stamp its timestamp and sync the assigned courier."""
    now = datetime.utcnow()
    previous = order.status
    order.status = new_status
    if new_status in UNDISPATCHED_STATUSES and order.delivery_person_id is not None:
        unassign_delivery_person(order)
    elif new_status == OrderStatus.ASSIGNED:
        order.assigned_at = now
    elif new_status == OrderStatus.PICKED_UP:
        order.picked_up_at = now
    elif new_status == OrderStatus.DELIVERED:
        order.delivered_at = now
        end_active_assignment(order, AssignmentStatus.COMPLETED, now)
        release_delivery_person(order.delivery_person_id)
    elif new_status == OrderStatus.CANCELLED:
        order.cancelled_at = now
        end_active_assignment(order, AssignmentStatus.CANCELLED)
        release_delivery_person(order.delivery_person_id)
    logger.info(f'Order {order.id} moved from {previous.value} to {new_status.value}')
    return order
