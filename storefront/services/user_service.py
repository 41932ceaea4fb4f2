"""
User Service: admin-side user management.
"""

import logging
import math
from datetime import datetime, timedelta, timezone

from storefront.errors import ConflictError, NotFound, ValidationError
from storefront.extensions import db
from storefront.models import User

logger = logging.getLogger(__name__)


def list_users(page=1, limit=10, search=None, role=None, email_verified=None):
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    query = User.query
    if search:
        query = query.filter(User.email.ilike(f"%{search}%"))
    if role:
        query = query.filter(User.role == role)
    if email_verified is not None:
        query = query.filter(User.email_verified == email_verified)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    total_pages = math.ceil(total / limit)
    return {
        "users": [u.to_dict() for u in users],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_more": page < total_pages,
        },
    }


def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    return user


def find_user(user_id=None, email=None):
    user = db.session.get(User, user_id) if user_id else User.query.filter_by(email=email).first()
    if not user:
        raise NotFound("User not found")
    return user


def set_role(user_id, role):
    user = get_user(user_id)
    user.role = role
    db.session.commit()
    logger.info("User %s role set to %s", user.id, role)
    return user


def set_email_verified(user_id, email_verified):
    user = get_user(user_id)
    user.email_verified = email_verified
    db.session.commit()
    return user


def ban_user(user_id, ban_reason=None, ban_expires_in=None, acting_user_id=None):
    if user_id == acting_user_id:
        raise ValidationError("You cannot ban yourself")
    user = get_user(user_id)
    user.banned = True
    user.ban_reason = ban_reason
    user.ban_expires = (
        datetime.now(timezone.utc) + timedelta(seconds=ban_expires_in) if ban_expires_in else None
    )
    db.session.commit()
    logger.info("Banned user %s", user.id)
    return user


def unban_user(user_id):
    user = get_user(user_id)
    user.banned = False
    user.ban_reason = None
    user.ban_expires = None
    db.session.commit()
    return user


def delete_user(user_id, acting_user_id=None):
    """Users with orders keep their row; orders must not lose their owner."""
    if user_id == acting_user_id:
        raise ValidationError("You cannot delete yourself")
    user = get_user(user_id)
    if user.orders:
        raise ConflictError(f"Cannot delete user with {len(user.orders)} orders")
    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %s", user_id)
