# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/storefront/routes/products.py
"""
Product catalog routes.

Browsing is public. Write operations require MANAGE_PRODUCTS and accept
either JSON or multipart/form-data with an optional productImage file.
"""
from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_permission
from ..services import products_service
from ..services.products_service import CatalogError
from ..services.storage_service import StorageError, UnsupportedFileError
from ..validation import ConflictError, ValidationError
from .helpers import flag_arg, page_args, request_payload

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List products.

    Query params:
    - limit, offset: page window (default 20, max 100)
    - category_id: only products in this category
    - sort_by_price: lowToHigh | highToLow
    - query: text search over name and description
    - low_stock: true to show products with fewer than 3 in stock
    """
    limit, offset = page_args()
    try:
        result = products_service.list_products(
            limit=limit,
            offset=offset,
            category_id=request.args.get("category_id", type=int),
            sort_by_price=request.args.get("sort_by_price") or None,
            query=request.args.get("query") or None,
            low_stock=flag_arg("low_stock"),
        )
    except ValidationError as e:
        return e.to_dict(), 400
    return result, 200


@products_bp.get("/new-arrivals")
def new_arrivals():
    limit = min(max(request.args.get("limit", default=5, type=int) or 5, 1), 50)
    return {"products": products_service.new_arrivals(limit)}, 200


@products_bp.get("/top-selling")
def top_selling():
    return {"products": products_service.top_selling()}, 200


@products_bp.get("/search")
def search_products():
    try:
        products = products_service.search_products(request.args.get("query", ""))
    except ValidationError as e:
        return e.to_dict(), 400
    return {"products": products}, 200


@products_bp.get("/<int:product_id>")
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except CatalogError as e:
        return {"error": str(e)}, e.status_code
    return product.to_dict(), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    try:
        payload = request_payload()
        created = products_service.create_product(payload, request.files.get("productImage"))
    except ValidationError as e:
        return e.to_dict(), 400

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    try:
        payload = request_payload()
        updated = products_service.update_product(product_id, payload, request.files.get("productImage"))
    except ValidationError as e:
        return e.to_dict(), 400
    except UnsupportedFileError as e:
        return {"error": str(e)}, 400
    except CatalogError as e:
        return {"error": str(e)}, e.status_code
    except StorageError:
        current_app.logger.exception("Failed to upload new product image")
        return {"error": "Failed to upload new image"}, 500

    return updated.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id)
    except CatalogError as e:
        return {"error": str(e)}, e.status_code
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200
