# agrilink/utils/util.py
import math
from functools import wraps
from flask import g
from agrilink.errors import Forbidden, ValidationError
from .auth_middleware import token_required


def role_required(*roles):
    def wrapper(fn):
        @wraps(fn)
        @token_required
        def decorator(*args, **kwargs):
            if g.user.role not in roles:
                raise Forbidden(f"Access denied. Required role: {' or '.join(role.value for role in roles)}")
            return fn(*args, **kwargs)
        return decorator
    return wrapper


def parse_number(value, field, minimum=None, maximum=None, allow_zero=True):
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number')
    if not math.isfinite(number):
        raise ValidationError(f'{field} must be a number')
    if not allow_zero and number <= 0:
        raise ValidationError(f'{field} must be greater than zero')
    if minimum is not None and number < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    if maximum is not None and number > maximum:
        raise ValidationError(f'{field} must be at most {maximum}')
    return number
