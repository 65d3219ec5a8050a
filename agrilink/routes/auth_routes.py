from flask_restx import Namespace, Resource, fields
from flask import request, g
from flask_jwt_extended import create_access_token, get_jwt
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import logging
import re
from .. import db, bcrypt
from agrilink.errors import Forbidden, Unauthenticated, ValidationError
from agrilink.models.user_model import User, Role, Availability
from agrilink.utils.auth_middleware import token_required
from agrilink.utils.role_utils import get_user_data_with_permissions

auth_ns = Namespace('auth', description='Authentication operations', tags=['Authentication'])

logger = logging.getLogger(__name__)

register_model = auth_ns.model('Register', {
    'name': fields.String(required=True, description='Full name'),
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='Password'),
    'type': fields.String(required=True, description='farmer, buyer or delivery'),
    'phone': fields.String(description='Phone number'),
    'location': fields.String(description='Town or city, used for delivery matching'),
    'farmSize': fields.String(description='Farmers only'),
    'experience': fields.String(description='Farmers only'),
    'vehicleType': fields.String(description='Delivery only'),
    'licenseNumber': fields.String(description='Delivery only')
})

login_model = auth_ns.model('Login', {
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='Password')
})

profile_model = auth_ns.model('Profile', {
    'name': fields.String(),
    'phone': fields.String(),
    'location': fields.String(),
    'farmSize': fields.String(),
    'experience': fields.String()
})

EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$')
MIN_PASSWORD_LENGTH = 6
SELF_REGISTER_ROLES = (Role.FARMER, Role.BUYER, Role.DELIVERY)


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={
        'email': user.email,
        'role': user.role.value,
        'name': user.name
    })


@auth_ns.route('/register')
class Register(Resource):
    @auth_ns.expect(register_model)
    def post(self):
        """Register a farmer, buyer or delivery account"""
        data = request.get_json(silent=True) or {}
        role_value = data.get('type') or data.get('role')
        if not all(data.get(k) for k in ('name', 'email', 'password')) or not role_value:
            raise ValidationError('Please provide all required fields')

        try:
            role = Role(role_value)
        except ValueError:
            role = None
        if role not in SELF_REGISTER_ROLES:
            raise ValidationError('Invalid account type. Must be: farmer, buyer, or delivery')
        if not EMAIL_REGEX.match(data['email']):
            raise ValidationError('Invalid email format')
        if len(data['password']) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
        if User.query.filter_by(email=data['email']).first():
            raise ValidationError('Email already registered')

        # Buyers and delivery are approved straight away, farmers wait for an admin
        new_user = User(
            name=data['name'],
            email=data['email'],
            password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
            phone=data.get('phone'),
            location=data.get('location'),
            role=role,
            approved=role in (Role.BUYER, Role.DELIVERY),
            availability_status=Availability.AVAILABLE if role == Role.DELIVERY else None,
            farm_size=data.get('farmSize'),
            experience=data.get('experience'),
            vehicle_type=data.get('vehicleType'),
            license_number=data.get('licenseNumber')
        )

        try:
            db.session.add(new_user)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ValidationError('Email already registered')

        logger.info(f'Registered {role.value} {new_user.id}')
        return {
            'success': True,
            'message': 'Registration successful! Your account is pending admin approval.'
            if role == Role.FARMER else 'Registration successful! You can now login.',
            'userId': new_user.id
        }, 201


@auth_ns.route('/login')
class Login(Resource):
    @auth_ns.expect(login_model)
    def post(self):
        """Log in and receive a bearer token"""
        data = request.get_json(silent=True) or {}
        if not data.get('email') or not data.get('password'):
            raise ValidationError('Please provide email and password')

        user = User.query.filter_by(email=data['email']).first()
        if not user or not bcrypt.check_password_hash(user.password, data['password']):
            raise Unauthenticated('Invalid email or password')

        if user.role == Role.FARMER and not user.approved:
            raise Forbidden('Your farmer account is pending admin approval. Please wait for verification.')

        if user.suspended:
            raise Forbidden('Your account has been suspended. Please contact admin.')

        user.last_login = datetime.utcnow()
        db.session.commit()
        logger.info(f'User {user.id} logged in')

        return {
            'success': True,
            'message': 'Login successful',
            'token': issue_token(user),
            'user': get_user_data_with_permissions(user)
        }, 200


@auth_ns.route('/profile')
class Profile(Resource):
    @token_required
    @auth_ns.doc('get_profile', security='BearerAuth')
    def get(self):
        """Current user profile"""
        return {'success': True, 'user': get_user_data_with_permissions(g.user)}, 200

    @token_required
    @auth_ns.expect(profile_model)
    @auth_ns.doc('update_profile', security='BearerAuth')
    def put(self):
        """Update own profile"""
        data = request.get_json(silent=True) or {}
        user = g.user
        fields_map = {
            'name': 'name',
            'phone': 'phone',
            'location': 'location',
            'farmSize': 'farm_size',
            'experience': 'experience'
        }
        updated = False
        for key, attr in fields_map.items():
            if key in data:
                if key == 'name' and not data[key]:
                    raise ValidationError('Name cannot be empty')
                setattr(user, attr, data[key] or None)
                updated = True
        if not updated:
            raise ValidationError('No fields to update')
        db.session.commit()
        return {
            'success': True,
            'message': 'Profile updated successfully',
            'user': get_user_data_with_permissions(user)
        }, 200


@auth_ns.route('/verify')
class VerifyToken(Resource):
    @token_required
    @auth_ns.doc('verify_token', security='BearerAuth')
    def get(self):
        """Check that the token is still valid"""
        claims = get_jwt()
        return {
            'success': True,
            'user': {
                'id': int(claims['sub']),
                'email': claims.get('email'),
                'role': claims.get('role'),
                'name': claims.get('name')
            }
        }, 200
