from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Notification(db.Model):
    """
    Append-only notice. user_id NULL addresses the admin back office;
    otherwise it belongs to that customer. Only is_read ever changes.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_created", "user_id", "created_at"),
        db.Index("ix_notifications_order", "order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    type = db.Column(db.String(64), nullable=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=True)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("notifications", lazy=True, passive_deletes=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "order_id": self.order_id,
            "message": self.message,
            "is_read": self.is_read,
            "created_at": to_utc_z(self.created_at),
        }
