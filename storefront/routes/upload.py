from flask import Blueprint, jsonify, request

from storefront.security import admin_required
from storefront.services import upload_service

upload_bp = Blueprint("upload", __name__)


@upload_bp.route("/image", methods=["POST"])
@admin_required
def upload_image():
    """
    Upload a product or category image
    ---
    tags:
      - Uploads
    security:
      - Bearer: []
    consumes:
      - multipart/form-data
    parameters:
      - name: file
        in: formData
        type: file
        required: true
      - name: folder
        in: formData
        type: string
        description: e.g. products, categories
    responses:
      200:
        description: Uploaded image URL
      400:
        description: Missing, oversized or non-image file
      502:
        description: Image host failed
    """
    result = upload_service.upload_image(request.files.get("file"), request.form.get("folder"))
    return jsonify({"success": True, **result}), 200
