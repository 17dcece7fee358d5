# Overview: Image upload endpoint backed by object storage.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..services import storage_service
from ..services.storage_service import StorageError, UnsupportedFileError

uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/upload")


@uploads_bp.post("")
@require_auth
@require_permission("UPLOAD_IMAGES")
def upload_image_route():
    """Store one image (JPEG, PNG, WebP or GIF, max 5 MB) and return its URL."""
    folder = request.form.get("folder", "categories")
    if folder not in ("categories", "products"):
        return {"error": "folder must be categories or products"}, 400

    try:
        stored = storage_service.upload_file(request.files.get("image"), folder)
    except UnsupportedFileError as e:
        return {"error": str(e)}, 400
    except StorageError:
        current_app.logger.exception("Failed to upload image")
        return {"error": "Failed to upload image"}, 500

    return stored, 201
