"""
Upload Service: forwards admin image uploads to ImageKit.
"""

import logging
import secrets
import time

import requests
from flask import current_app

from storefront.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)

IMAGEKIT_UPLOAD_URL = "https://upload.imagekit.io/api/v1/files/upload"
ALLOWED_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}
MAX_SIZE = 5 * 1024 * 1024


def upload_image(file_storage, folder=None):
    if file_storage is None or not file_storage.filename:
        raise ValidationError("No file provided")
    if file_storage.mimetype not in ALLOWED_TYPES:
        raise ValidationError("Invalid file type. Only images are allowed.")

    content = file_storage.read()
    if len(content) > MAX_SIZE:
        raise ValidationError("File size exceeds 5MB limit")

    private_key = current_app.config.get("IMAGEKIT_PRIVATE_KEY")
    if not private_key:
        raise UpstreamError("Image upload is not configured")

    extension = file_storage.filename.rsplit(".", 1)[-1] if "." in file_storage.filename else "jpg"
    file_name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.{extension}"

    try:
        response = requests.post(
            IMAGEKIT_UPLOAD_URL,
            files={"file": (file_name, content, file_storage.mimetype)},
            data={
                "fileName": file_name,
                "folder": f"/{folder}" if folder else "/",
                "useUniqueFileName": "true",
            },
            # private key as the basic-auth user, empty password
            auth=(private_key, ""),
            timeout=current_app.config.get("HTTP_TIMEOUT", 10.0),
        )
    except requests.RequestException as e:
        logger.error("Image upload error: %s", e)
        raise UpstreamError("Failed to upload image")

    if response.status_code >= 400:
        logger.error("ImageKit returned %s: %s", response.status_code, response.text)
        raise UpstreamError("Failed to upload image")

    data = response.json()
    return {"url": data.get("url"), "file_id": data.get("fileId")}
