from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from library_api.models.user import STAFF_ROLES


def role_required(*roles):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            claims = get_jwt()
            role = claims.get("role")
            if role not in roles:
                return jsonify({"success": False, "message": "You do not have permission for this action"}), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def staff_required(fn):
    """Librarian or admin."""
    return role_required(*STAFF_ROLES)(fn)


def current_user_id() -> int:
    return int(get_jwt_identity())
