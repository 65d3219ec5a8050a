import itertools
import unittest
from agrilink import bcrypt, create_app, db
from agrilink.config import Config
from agrilink.models import Product, ProductStatus, User, Role, Availability
from agrilink.routes.auth_routes import issue_token
from agrilink.services.product_service import apply_pricing

PASSWORD = 'secret1'

_emails = itertools.count(1)


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    JWT_SECRET_KEY = 'agrilink-test-secret-key-with-enough-length'
    BCRYPT_LOG_ROUNDS = 4
    AUTO_ASSIGN_DELIVERY = True
    DEFAULT_SERVICE_FEE_PERCENTAGE = 10.0
    DEFAULT_DELIVERY_FEE = 0.0
    LOG_LEVEL = 'WARNING'


class AgrilinkTestCase(unittest.TestCase):
    config_class = TestConfig

    def setUp(self):
        self.app = create_app(self.config_class)
        self.client = self.app.test_client()
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.create_all()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def make_user(self, role, name=None, email=None, approved=True, location='Addis Ababa', **extra):
        role = Role(role)
        user = User(
            name=name or f'{role.value.title()} User',
            email=email or f'{role.value}{next(_emails)}@agrilink.test',
            password=bcrypt.generate_password_hash(PASSWORD).decode('utf-8'),
            phone='0911000000',
            location=location,
            role=role,
            approved=approved,
            availability_status=extra.pop('availability_status', Availability.AVAILABLE if role == Role.DELIVERY else None),
            **extra
        )
        db.session.add(user)
        db.session.commit()
        return user

    def make_product(self, farmer, base_price=100.0, quantity=50.0, status=ProductStatus.APPROVED,
                     fee_percentage=10.0, **extra):
        product = Product(
            farmer_id=farmer.id,
            title=extra.pop('title', 'Teff'),
            category=extra.pop('category', 'grains'),
            quantity=quantity,
            location=extra.pop('location', farmer.location),
            status=status,
            **extra
        )
        apply_pricing(product, base_price, fee_percentage)
        db.session.add(product)
        db.session.commit()
        return product

    def headers(self, user):
        return {'Authorization': f'Bearer {issue_token(user)}'}

    def place_order(self, buyer, product, quantity=5, **extra):
        payload = {'productId': product.id, 'quantity': quantity}
        payload.update(extra)
        return self.client.post('/api/orders', json=payload, headers=self.headers(buyer))
