# Overview: Flask API routes for orders; parses input and returns JSON responses.

# backend/storefront/routes/orders.py
"""Order API routes with permission enforcement"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..services import order_service, permission_service
from ..services.order_service import OrderError, OrderFilters
from ..services.storage_service import StorageError, UnsupportedFileError
from ..validation import ValidationError, parse_json_field, validate_order_request
from .helpers import page_args, request_payload


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


def _order_error(e: OrderError):
    return jsonify({"error": str(e), "details": e.details}), e.status_code


@orders_bp.post("")
@require_auth
@require_permission("PLACE_ORDER")
def place_order_route():
    """
    Place an order.

    Accepts JSON, or multipart/form-data with items and shipping as JSON
    strings and an optional payment_proof file.

    Requires: PLACE_ORDER permission
    """
    try:
        data = request_payload()
        user_id = data.get("userId", data.get("user_id", g.current_user.id))
        order_input = validate_order_request(
            user_id=user_id,
            items=parse_json_field(data.get("items"), "items"),
            shipping=parse_json_field(data.get("shipping"), "shipping"),
            payment_type=data.get("payment_type"),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    if order_input.user_id != g.current_user.id:
        return jsonify({"error": "Orders can only be placed for your own account"}), 403

    try:
        order = order_service.place_order(order_input, request.files.get("payment_proof"))
    except OrderError as e:
        return _order_error(e)
    except Exception:
        current_app.logger.exception("Failed to place order")
        return jsonify({"error": "Failed to place order"}), 500

    return jsonify({"message": "Order placed successfully", "orderId": order.id, "order": order.to_dict()}), 201


@orders_bp.get("")
@require_auth
@require_permission("VIEW_ALL_ORDERS")
def list_orders_route():
    """
    Back-office order list.

    Query params: limit, offset, status, payment_type, start_date, end_date, search
    """
    limit, offset = page_args()
    try:
        filters = OrderFilters.from_args(request.args)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    orders, total = order_service.list_orders(filters, limit=limit, offset=offset)
    return jsonify({"orders": orders, "total": total, "limit": limit, "offset": offset}), 200


@orders_bp.get("/user/<int:user_id>")
@require_auth
@require_permission("VIEW_OWN_ORDERS")
def list_user_orders_route(user_id: int):
    try:
        orders = order_service.list_user_orders(user_id, g.current_user)
    except OrderError as e:
        return _order_error(e)
    return jsonify(orders), 200


@orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("VIEW_OWN_ORDERS")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id, g.current_user)
    except OrderError as e:
        return _order_error(e)
    return jsonify(order), 200


@orders_bp.put("/<int:order_id>/cancel")
@require_auth
@require_permission("CANCEL_OWN_ORDER")
def cancel_order_route(order_id: int):
    """
    Cancel a pending order and restock its items.

    Owners may cancel their own orders; CANCEL_ANY_ORDER lets admins cancel any.
    """
    try:
        order = order_service.cancel_order(order_id, g.current_user)
    except OrderError as e:
        return _order_error(e)
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Failed to cancel order"}), 500

    return jsonify({"message": "Order cancelled", "order": order.to_dict(include_items=True)}), 200


@orders_bp.put("/<int:order_id>/status")
@require_auth
@require_permission("UPDATE_ORDER_STATUS")
def update_status_route(order_id: int):
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_status(order_id, data.get("status"), g.current_user)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except OrderError as e:
        return _order_error(e)
    except Exception:
        current_app.logger.exception("Failed to update order status")
        return jsonify({"error": "Failed to update order status"}), 500

    return jsonify({"message": "Order status updated", "order": order.to_dict()}), 200


@orders_bp.put("/<int:order_id>")
@require_auth
@require_permission("EDIT_ORDER")
def update_order_route(order_id: int):
    data = request.get_json(silent=True) or {}

    # A status key is a status change and needs that permission too
    if "status" in data and not permission_service.user_has_permission(
        g.current_user, "UPDATE_ORDER_STATUS"
    ):
        return jsonify({"error": "Permission denied", "required_permission": "UPDATE_ORDER_STATUS"}), 403

    try:
        order = order_service.update_order(order_id, data, g.current_user)
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except OrderError as e:
        return _order_error(e)
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Failed to update order"}), 500

    return jsonify({"message": "Order updated", "order": order.to_dict()}), 200


@orders_bp.delete("/delete/<int:order_id>")
@require_auth
@require_permission("DELETE_ORDER")
def delete_order_route(order_id: int):
    try:
        order_service.delete_order(order_id)
    except OrderError as e:
        return _order_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete order")
        return jsonify({"error": "Failed to delete order"}), 500

    return jsonify({"message": "Order deleted"}), 200


@orders_bp.put("/<int:order_id>/shipping-bill-upload")
@require_auth
@require_permission("MANAGE_SHIPPING_BILLS")
def upload_shipping_bill_route(order_id: int):
    file = request.files.get("shipping_bill")
    if file is None or not file.filename:
        return jsonify({"error": "shipping_bill file is required"}), 400

    try:
        order = order_service.attach_shipping_bill(order_id, file)
    except OrderError as e:
        return _order_error(e)
    except UnsupportedFileError as e:
        return jsonify({"error": str(e)}), 400
    except StorageError:
        current_app.logger.exception("Failed to upload shipping bill")
        return jsonify({"error": "Failed to upload shipping bill"}), 500

    return jsonify({"message": "Shipping bill uploaded", "shipping_bill_url": order.shipping_bill_url}), 200


@orders_bp.delete("/<int:order_id>/shipping-bill")
@require_auth
@require_permission("MANAGE_SHIPPING_BILLS")
def delete_shipping_bill_route(order_id: int):
    try:
        order_service.remove_shipping_bill(order_id)
    except OrderError as e:
        return _order_error(e)
    return jsonify({"message": "Shipping bill removed"}), 200
