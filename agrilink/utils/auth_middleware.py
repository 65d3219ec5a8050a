from functools import wraps
from flask import g
from flask_jwt_extended import jwt_required, current_user
from agrilink import db, jwt
from agrilink.errors import Forbidden
from agrilink.models.user_model import User, Role


def setup_auth_middleware(app):
    @jwt.user_lookup_loader
    def load_user(_jwt_header, jwt_data):
        return db.session.get(User, int(jwt_data['sub']))


def token_required(f):
    """Authenticate the caller and reject suspended accounts."""
    @wraps(f)
    @jwt_required()
    def decorated(*args, **kwargs):
        if current_user.suspended:
            raise Forbidden('Your account has been suspended. Please contact admin.')
        g.user = current_user
        return f(*args, **kwargs)
    return decorated


def farmer_approval_required(f):
    """Farmers must be approved by an admin before touching listings or orders."""
    @wraps(f)
    def decorated(*args, **kwargs):
        user = g.user
        if user.role == Role.FARMER and not user.approved:
            raise Forbidden('Your farmer account is pending admin approval.')
        return f(*args, **kwargs)
    return decorated
