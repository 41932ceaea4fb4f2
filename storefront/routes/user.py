from flask import Blueprint, jsonify
from flask_jwt_extended import get_jwt_identity, jwt_required

from storefront.schemas import UpdateProfileIn
from storefront.security import parse
from storefront.services import auth_service

user_bp = Blueprint("user", __name__)


@user_bp.route("/update-profile", methods=["PUT"])
@jwt_required()
def update_profile():
    """
    Update name and/or avatar URL of the current user
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name:
              type: string
            image:
              type: string
    responses:
      200:
        description: Profile updated
      400:
        description: Invalid input
      401:
        description: Not authenticated
    """
    user = auth_service.update_profile(get_jwt_identity(), parse(UpdateProfileIn))
    return jsonify({"success": True, "message": "Profile updated successfully", "user": user.to_dict()}), 200
