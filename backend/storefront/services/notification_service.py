# Overview: Service-layer operations for notifications; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Notification, Order


# Notification types
NEW_ORDER = "new_order"
CUSTOMER_ORDER_PLACED = "customer_order_placed"
ORDER_CANCELLED = "order_cancelled"
ORDER_CANCELLED_CUSTOMER = "order_cancelled_customer"
ORDER_STATUS_UPDATE = "order_status_update"
SHIPPING_BILL_UPLOADED = "shipping_bill_uploaded"


class NotificationError(Exception):
    """Raised for notification lookups that fail."""
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def record(*, type: str, message: str, user_id: int | None = None, order_id: int | None = None) -> Notification:
    """
    Add a notification to the current transaction. user_id None targets the admin back office.

    The caller owns the commit so the notification lands atomically with the
    change it describes.
    """
    notification = Notification(user_id=user_id, type=type, order_id=order_id, message=message)
    db.session.add(notification)
    return notification


def list_admin_notifications(limit: int = 100) -> list[Notification]:
    return (
        db.session.query(Notification)
        .filter(Notification.user_id.is_(None))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def list_user_notifications(user_id: int, limit: int = 100) -> list[dict]:
    """Customer feed, newest first, with the current status of the related order."""
    rows = (
        db.session.query(Notification, Order.status)
        .outerjoin(Order, Notification.order_id == Order.id)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    result = []
    for notification, order_status in rows:
        data = notification.to_dict()
        data["order_status"] = order_status
        result.append(data)
    return result


def count_unread(user_id: int | None) -> int:
    query = db.session.query(Notification).filter(Notification.is_read.is_(False))
    if user_id is None:
        query = query.filter(Notification.user_id.is_(None))
    else:
        query = query.filter(Notification.user_id == user_id)
    return query.count()


def mark_admin_read(notification_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if not notification or notification.user_id is not None:
        raise NotificationError("Notification not found", 404)
    notification.is_read = True
    db.session.commit()
    return notification


def mark_user_read(notification_id: int, user_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if not notification:
        raise NotificationError("Notification not found", 404)
    if notification.user_id != user_id:
        raise NotificationError("Not your notification", 403)
    notification.is_read = True
    db.session.commit()
    return notification
