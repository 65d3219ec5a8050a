import enum
from datetime import datetime
from agrilink import db
from agrilink.models.user_model import _enum_values


class OrderStatus(enum.Enum):
    NEW = 'new'
    PROCESSING = 'processing'
    ASSIGNED = 'assigned'
    PICKED_UP = 'picked_up'
    IN_TRANSIT = 'in_transit'
    DELIVERED = 'delivered'
    CANCELLED = 'cancelled'


class Order(db.Model):
    __tablename__ = 'orders'
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='SET NULL'))
    buyer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    farmer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    delivery_person_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), index=True)
    product_name = db.Column(db.String(150))
    quantity = db.Column(db.Float, nullable=False)
    price_per_kg = db.Column(db.Float, nullable=False)
    total_price = db.Column(db.Float, nullable=False)
    delivery_address = db.Column(db.String(255))
    delivery_location = db.Column(db.String(120))
    special_instructions = db.Column(db.Text)
    status = db.Column(db.Enum(OrderStatus, name='order_status', values_callable=_enum_values),
                       nullable=False, default=OrderStatus.NEW)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    assigned_at = db.Column(db.DateTime)
    picked_up_at = db.Column(db.DateTime)
    delivered_at = db.Column(db.DateTime)
    cancelled_at = db.Column(db.DateTime)

    product = db.relationship('Product', foreign_keys=[product_id])
    buyer = db.relationship('User', foreign_keys=[buyer_id])
    farmer = db.relationship('User', foreign_keys=[farmer_id])
    delivery_person = db.relationship('User', foreign_keys=[delivery_person_id])
    assignments = db.relationship('DeliveryAssignment', backref='order', lazy=True,
                                  order_by='DeliveryAssignment.id')

    def __repr__(self):
        return f'<Order {self.id} by User {self.buyer_id} ({self.status.value})>'

    def to_dict(self):
        def stamp(value):
            return value.isoformat() if value else None

        product, buyer, farmer, courier = self.product, self.buyer, self.farmer, self.delivery_person
        return {
            'id': self.id,
            'product_id': self.product_id,
            'buyer_id': self.buyer_id,
            'farmer_id': self.farmer_id,
            'delivery_person_id': self.delivery_person_id,
            'product_name': self.product_name,
            'product_title': product.title if product else self.product_name,
            'product_images': list(product.images or []) if product else [],
            'quantity': self.quantity,
            'price_per_kg': self.price_per_kg,
            'total_price': self.total_price,
            'delivery_address': self.delivery_address,
            'delivery_location': self.delivery_location,
            'special_instructions': self.special_instructions,
            'status': self.status.value,
            'buyer_name': buyer.name if buyer else None,
            'buyer_phone': buyer.phone if buyer else None,
            'farmer_name': farmer.name if farmer else None,
            'farmer_phone': farmer.phone if farmer else None,
            'delivery_person_name': courier.name if courier else None,
            'delivery_person_phone': courier.phone if courier else None,
            'created_at': stamp(self.created_at),
            'updated_at': stamp(self.updated_at),
            'assigned_at': stamp(self.assigned_at),
            'picked_up_at': stamp(self.picked_up_at),
            'delivered_at': stamp(self.delivered_at),
            'cancelled_at': stamp(self.cancelled_at),
        }
