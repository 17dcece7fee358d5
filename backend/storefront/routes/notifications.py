# Overview: Flask API routes for notifications; parses input and returns JSON responses.

from flask import Blueprint, g, jsonify

from ..decorators import require_auth, require_permission
from ..services import notification_service
from ..services.notification_service import NotificationError

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
@require_permission("VIEW_ADMIN_NOTIFICATIONS")
def list_admin_route():
    """Back-office feed (notifications with no recipient user)."""
    notifications = notification_service.list_admin_notifications()
    return jsonify({
        "notifications": [n.to_dict() for n in notifications],
        "unread": notification_service.count_unread(None),
    }), 200


@notifications_bp.put("/<int:notification_id>/read")
@require_auth
@require_permission("VIEW_ADMIN_NOTIFICATIONS")
def mark_admin_read_route(notification_id: int):
    try:
        notification = notification_service.mark_admin_read(notification_id)
    except NotificationError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify(notification.to_dict()), 200


@notifications_bp.get("/user/<int:user_id>")
@require_auth
@require_permission("VIEW_OWN_NOTIFICATIONS")
def list_user_route(user_id: int):
    if user_id != g.current_user.id:
        return jsonify({"error": "You can only view your own notifications"}), 403
    return jsonify({
        "notifications": notification_service.list_user_notifications(user_id),
        "unread": notification_service.count_unread(user_id),
    }), 200


@notifications_bp.put("/user/<int:notification_id>/read")
@require_auth
@require_permission("VIEW_OWN_NOTIFICATIONS")
def mark_user_read_route(notification_id: int):
    try:
        notification = notification_service.mark_user_read(notification_id, g.current_user.id)
    except NotificationError as e:
        return jsonify({"error": str(e)}), e.status_code
    return jsonify(notification.to_dict()), 200
