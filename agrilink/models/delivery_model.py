import enum
from datetime import datetime
from agrilink import db
from agrilink.models.user_model import _enum_values


class AssignmentType(enum.Enum):
    AUTOMATIC = 'automatic'
    MANUAL = 'manual'


class AssignmentStatus(enum.Enum):
    ASSIGNED = 'assigned'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


ACTIVE_ASSIGNMENT_STATUSES = (AssignmentStatus.ASSIGNED, AssignmentStatus.ACCEPTED)


class DeliveryAssignment(db.Model):
    __tablename__ = 'delivery_assignments'
    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False, index=True)
    delivery_person_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    assignment_type = db.Column(db.Enum(AssignmentType, name='assignment_type', values_callable=_enum_values),
                                nullable=False, default=AssignmentType.AUTOMATIC)
    delivery_location = db.Column(db.String(120))
    delivery_fee = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text)
    status = db.Column(db.Enum(AssignmentStatus, name='assignment_status', values_callable=_enum_values),
                       nullable=False, default=AssignmentStatus.ASSIGNED)
    assigned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    accepted_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)

    delivery_person = db.relationship('User', foreign_keys=[delivery_person_id])

    def __repr__(self):
        return f'<DeliveryAssignment {self.id} order={self.order_id} ({self.status.value})>'

    @property
    def is_active(self):
        return self.status in ACTIVE_ASSIGNMENT_STATUSES

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'delivery_person_id': self.delivery_person_id,
            'assignment_type': self.assignment_type.value,
            'delivery_location': self.delivery_location,
            'delivery_fee': self.delivery_fee,
            'notes': self.notes,
            'status': self.status.value,
            'assigned_at': self.assigned_at.isoformat() if self.assigned_at else None,
            'accepted_at': self.accepted_at.isoformat() if self.accepted_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
