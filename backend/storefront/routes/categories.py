# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..services import category_service
from ..services.category_service import CategoryError
from ..validation import ValidationError

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    return {"categories": [c.to_dict() for c in category_service.list_categories()]}, 200


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def create_category_route():
    try:
        category = category_service.create_category(request.get_json(silent=True) or {})
    except ValidationError as e:
        return e.to_dict(), 400
    return category.to_dict(), 201


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def update_category_route(category_id: int):
    try:
        category = category_service.update_category(category_id, request.get_json(silent=True) or {})
    except ValidationError as e:
        return e.to_dict(), 400
    except CategoryError as e:
        return {"error": str(e)}, e.status_code
    return category.to_dict(), 200


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("DELETE_CATEGORY")
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(category_id)
    except CategoryError as e:
        return {"error": str(e)}, e.status_code
    return {"message": "Category deleted"}, 200
