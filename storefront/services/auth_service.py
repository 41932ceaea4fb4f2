"""
Auth Service: accounts, email verification codes and password resets.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token

from storefront.errors import AppError, Forbidden, NotFound, Unauthorized, ValidationError
from storefront.extensions import db
from storefront.models import User, Verification
from storefront.services import notification_service

logger = logging.getLogger(__name__)

RESET_PREFIX = "reset-password:"


def generate_otp():
    """Six digits from a CSPRNG."""
    return f"{secrets.randbelow(900000) + 100000}"


def _issue_verification(identifier, value, user, minutes):
    Verification.query.filter_by(identifier=identifier).delete()
    verification = Verification(
        identifier=identifier,
        value=value,
        expires_at=datetime.now(timezone.utc) + timedelta(minutes=minutes),
        user_id=user.id,
    )
    db.session.add(verification)
    db.session.commit()
    return verification


def _consume(identifier, value):
    """Return the matching live record's user and delete the record, else None."""
    verification = Verification.query.filter_by(identifier=identifier, value=value).first()
    if not verification:
        return None
    if verification.is_expired():
        db.session.delete(verification)
        db.session.commit()
        return None
    user = verification.user
    db.session.delete(verification)
    return user


def send_verification_code(user):
    code = generate_otp()
    _issue_verification(user.email, code, user, current_app.config["OTP_TTL_MINUTES"])
    notification_service.send_verification_code(user.email, code, first_name=user.name)
    return code


def register(data):
    if User.query.filter_by(email=data.email).first():
        raise AppError("Email already exists", status_code=409)

    user = User(email=data.email, name=data.name)
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s", user.id)

    send_verification_code(user)
    return user


def _clear_expired_ban(user):
    if user.banned and not user.ban_active:
        user.banned = False
        user.ban_reason = None
        user.ban_expires = None
        db.session.commit()


def login(data):
    user = User.query.filter_by(email=data.email).first()
    if not user or not user.check_password(data.password):
        raise Unauthorized("Invalid email or password")

    _clear_expired_ban(user)
    if user.banned:
        raise Forbidden(f"Account banned{': ' + user.ban_reason if user.ban_reason else ''}")

    if not user.email_verified:
        send_verification_code(user)

    return {
        "access_token": create_access_token(identity=user.id),
        "refresh_token": create_refresh_token(identity=user.id),
        "user": user.to_dict(),
    }


def verify_email(data):
    user = _consume(data.email, data.otp)
    if not user:
        raise ValidationError("Invalid or expired OTP code")
    user.email_verified = True
    db.session.commit()
    logger.info("Verified email for user %s", user.id)
    notification_service.send_welcome(user.email, first_name=user.name)
    return user


def resend_verification(data):
    """Returns a message that does not reveal whether the account exists."""
    user = User.query.filter_by(email=data.email).first()
    if user:
        if user.email_verified:
            return "Email is already verified"
        send_verification_code(user)
    return (
        "If an account with that email exists and is not verified, "
        "a verification email has been sent."
    )


def forgot_password(data):
    user = User.query.filter_by(email=data.email).first()
    if user:
        token = secrets.token_urlsafe(32)
        _issue_verification(
            RESET_PREFIX + user.email, token, user, current_app.config["RESET_TOKEN_TTL_MINUTES"]
        )
        reset_link = f"{current_app.config['APP_BASE_URL'].rstrip('/')}/reset-password?token={token}"
        notification_service.send_password_reset(user.email, reset_link, first_name=user.name)
    return "If an account with that email exists, a password reset link has been sent"


def reset_password(data):
    verification = Verification.query.filter(
        Verification.identifier.startswith(RESET_PREFIX),
        Verification.value == data.token,
    ).first()
    user = _consume(verification.identifier, data.token) if verification else None
    if not user:
        raise ValidationError("Invalid or expired reset token")
    user.set_password(data.password)
    db.session.commit()
    logger.info("Password reset for user %s", user.id)
    return user


def get_user(user_id):
    user = db.session.get(User, user_id) if user_id else None
    if not user:
        raise NotFound("User not found")
    return user


def update_profile(user_id, data):
    user = get_user(user_id)
    if data.name is not None:
        user.name = data.name
    if data.image is not None:
        user.image = data.image
    db.session.commit()
    return user
