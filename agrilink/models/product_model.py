import enum
from datetime import datetime
from agrilink import db
from agrilink.models.user_model import _enum_values


class ProductStatus(enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    SUSPENDED = 'suspended'


class Product(db.Model):
    __tablename__ = 'products'
    id = db.Column(db.Integer, primary_key=True)
    farmer_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, default='')
    category = db.Column(db.String(60), nullable=False)
    base_price = db.Column(db.Float, nullable=False)
    # snapshot of the global rate when the price was last set
    service_fee_percentage = db.Column(db.Float, nullable=False)
    service_fee = db.Column(db.Float, nullable=False)
    display_price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Float, nullable=False)
    location = db.Column(db.String(120))
    harvest_date = db.Column(db.Date)
    organic = db.Column(db.Boolean, nullable=False, default=False)
    certified = db.Column(db.Boolean, nullable=False, default=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    status = db.Column(db.Enum(ProductStatus, name='product_status', values_callable=_enum_values),
                       nullable=False, default=ProductStatus.PENDING)
    rejection_reason = db.Column(db.String(255))
    available = db.Column(db.Boolean, nullable=False, default=True)
    approved_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Product {self.title} ({self.status.value})>'
