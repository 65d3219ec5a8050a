import enum
from datetime import datetime
from agrilink import db


class Role(enum.Enum):
    FARMER = 'farmer'
    BUYER = 'buyer'
    DELIVERY = 'delivery'
    ADMIN = 'admin'


class Availability(enum.Enum):
    AVAILABLE = 'available'
    BUSY = 'busy'
    OFFLINE = 'offline'


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(30))
    location = db.Column(db.String(120), index=True)
    role = db.Column(db.Enum(Role, name='user_role', values_callable=_enum_values), nullable=False, default=Role.BUYER)
    approved = db.Column(db.Boolean, nullable=False, default=False)
    approved_at = db.Column(db.DateTime)
    suspended = db.Column(db.Boolean, nullable=False, default=False)
    availability_status = db.Column(db.Enum(Availability, name='availability_status', values_callable=_enum_values))
    farm_size = db.Column(db.String(50))
    experience = db.Column(db.String(50))
    vehicle_type = db.Column(db.String(50))
    license_number = db.Column(db.String(50))
    profile_picture = db.Column(db.String(255))
    last_login = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    products = db.relationship('Product', backref='farmer', lazy=True, foreign_keys='Product.farmer_id',
                               cascade='all, delete-orphan')

    def __repr__(self):
        return f'<User {self.email} ({self.role.value})>'

    def to_dict(self, private=True):
        data = {
            'id': self.id,
            'name': self.name,
            'location': self.location,
            'role': self.role.value,
            'profile_picture': self.profile_picture,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if private:
            data.update({
                'email': self.email,
                'phone': self.phone,
                'approved': self.approved,
                'suspended': self.suspended,
                'availability_status': self.availability_status.value if self.availability_status else None,
                'farm_size': self.farm_size,
                'experience': self.experience,
                'vehicle_type': self.vehicle_type,
                'license_number': self.license_number,
                'last_login': self.last_login.isoformat() if self.last_login else None,
            })
        return data
