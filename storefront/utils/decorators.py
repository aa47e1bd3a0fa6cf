# ------- storefront/utils/decorators.py -------
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ..extensions import db
from ..utils.api import api_error
from ..model.user import User

def _user_from_identity(uid):
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, uid)
    return user if user and user.active else None

def _current_user():
    verify_jwt_in_request()
    return _user_from_identity(get_jwt_identity())

def optional_user():
    """Active user behind the bearer token, or None for guests."""
    verify_jwt_in_request(optional=True)
    uid = get_jwt_identity()
    return _user_from_identity(uid) if uid is not None else None

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        u = _current_user()
        if not u:
            return jsonify(api_error("Invalid or inactive user")), 401
        return fn(*args, **kwargs)
    return wrapper

# support a custom error message
def role_required(*roles, message: str | None = None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = _current_user()
            if not u:
                return jsonify(api_error("Invalid or inactive user")), 401
            if u.role not in roles:
                return jsonify(api_error(message or "Access denied. Administrators only.")), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator

admin_required = role_required("admin")
