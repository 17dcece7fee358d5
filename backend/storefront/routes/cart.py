# Overview: Flask API routes for the shopping cart; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import cart_service
from ..services.cart_service import CartError
from ..validation import ValidationError

cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


def _cart_error(e: CartError):
    return jsonify({"error": str(e), "details": e.details}), e.status_code


def _own_cart_only(user_id: int):
    if user_id != g.current_user.id:
        return jsonify({"error": "You can only access your own cart"}), 403
    return None


@cart_bp.get("/<int:user_id>")
@require_auth
@require_permission("USE_CART")
def get_cart_route(user_id: int):
    denied = _own_cart_only(user_id)
    if denied:
        return denied
    items = cart_service.get_cart(user_id)
    return jsonify([item.to_dict() for item in items]), 200


@cart_bp.get("/count/<int:user_id>")
@require_auth
@require_permission("USE_CART")
def count_route(user_id: int):
    denied = _own_cart_only(user_id)
    if denied:
        return denied
    return jsonify({"count": cart_service.count_items(user_id)}), 200


@cart_bp.post("/add")
@require_auth
@require_permission("USE_CART")
def add_route():
    data = request.get_json(silent=True) or {}
    try:
        item, created = cart_service.add_item(
            g.current_user.id,
            data.get("productId", data.get("product_id")),
            data.get("quantity", 1),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except CartError as e:
        return _cart_error(e)

    message = "Added to cart" if created else "Cart updated"
    return jsonify({"message": message, "item": item.to_dict()}), 201 if created else 200


@cart_bp.put("/update/<int:cart_item_id>")
@require_auth
@require_permission("USE_CART")
def update_route(cart_item_id: int):
    data = request.get_json(silent=True) or {}
    try:
        item = cart_service.update_quantity(g.current_user.id, cart_item_id, data.get("quantity"))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except CartError as e:
        return _cart_error(e)
    return jsonify({"message": "Cart updated", "item": item.to_dict()}), 200


@cart_bp.delete("/remove/<int:cart_item_id>")
@require_auth
@require_permission("USE_CART")
def remove_route(cart_item_id: int):
    try:
        cart_service.remove_item(g.current_user.id, cart_item_id)
    except CartError as e:
        return _cart_error(e)
    return jsonify({"message": "Item removed from cart"}), 200


@cart_bp.delete("/clear")
@require_auth
@require_permission("USE_CART")
def clear_route():
    removed = cart_service.clear_cart(g.current_user.id)
    return jsonify({"message": "Cart cleared", "removed": removed}), 200
