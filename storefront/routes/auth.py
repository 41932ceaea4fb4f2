from flask import Blueprint, jsonify
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required

from storefront.extensions import BLOCKLIST
from storefront.schemas import (
    EmailIn,
    LoginIn,
    RegisterIn,
    ResetPasswordIn,
    VerifyEmailIn,
)
from storefront.security import parse
from storefront.services import auth_service

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    """
    Register a new user and send an email verification code
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email:
              type: string
            password:
              type: string
            name:
              type: string
    responses:
      201:
        description: User registered
      400:
        description: Invalid input
      409:
        description: Email already exists
    """
    user = auth_service.register(parse(RegisterIn))
    return jsonify({
        "success": True,
        "message": "User registered successfully. Check your email for a verification code.",
        "user": user.to_dict(),
    }), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate user and return tokens
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email:
              type: string
            password:
              type: string
    responses:
      200:
        description: Login successful
      401:
        description: Invalid credentials
      403:
        description: Account banned
    """
    result = auth_service.login(parse(LoginIn))
    return jsonify({"success": True, "message": "Login successful", **result}), 200


@auth_bp.route("/refresh", methods=["POST"])
@jwt_required(refresh=True)
def refresh():
    """
    Refresh access token
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: New access token
    """
    return jsonify({"access_token": create_access_token(identity=get_jwt_identity())}), 200


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    """
    Logout user (revoke token)
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
    """
    BLOCKLIST.add(get_jwt()["jti"])
    return jsonify({"success": True, "message": "Logged out successfully"}), 200


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    """
    Current authenticated user
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: The user
      401:
        description: Not authenticated
    """
    user = auth_service.get_user(get_jwt_identity())
    return jsonify({"user": user.to_dict()}), 200


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email():
    """
    Verify email address with the 6-digit code
    ---
    tags:
      - Auth
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - otp
          properties:
            email:
              type: string
            otp:
              type: string
    responses:
      200:
        description: Email verified
      400:
        description: Invalid or expired code
    """
    user = auth_service.verify_email(parse(VerifyEmailIn))
    return jsonify({"success": True, "message": "Email verified successfully", "user": user.to_dict()}), 200


@auth_bp.route("/resend-verification", methods=["POST"])
def resend_verification():
    """
    Resend the verification code
    ---
    tags:
      - Auth
    responses:
      200:
        description: Generic acknowledgement
    """
    message = auth_service.resend_verification(parse(EmailIn))
    return jsonify({"success": True, "message": message}), 200


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """
    Send a password reset link
    ---
    tags:
      - Auth
    responses:
      200:
        description: Generic acknowledgement
    """
    message = auth_service.forgot_password(parse(EmailIn))
    return jsonify({"success": True, "message": message}), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    """
    Reset password with a token from the reset email
    ---
    tags:
      - Auth
    responses:
      200:
        description: Password reset
      400:
        description: Invalid or expired token
    """
    auth_service.reset_password(parse(ResetPasswordIn))
    return jsonify({"success": True, "message": "Password reset successfully"}), 200
