from functools import wraps

from flask import request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from storefront.errors import Forbidden, Unauthorized
from storefront.extensions import db
from storefront.models import User


def current_user_id(optional=False):
    verify_jwt_in_request(optional=optional)
    return get_jwt_identity()


def admin_required(fn):
    """Authenticated and role == admin."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        user_id = current_user_id(optional=True)
        if not user_id:
            raise Unauthorized("Not authenticated")
        user = db.session.get(User, user_id)
        if not user or not user.is_admin:
            raise Forbidden("Unauthorized: Admin access required")
        return fn(*args, **kwargs)

    return wrapper


def parse(schema):
    """Validate the JSON body against a pydantic schema."""
    return schema.model_validate(request.get_json(silent=True) or {})
