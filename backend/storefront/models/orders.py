from __future__ import annotations

from ..extensions import db
from storefront.money import format_money
from storefront.time_utils import to_utc_z

ORDER_STATUSES = ("pending", "paid", "shipped", "completed", "cancelled")


class Order(db.Model):
    """
    Customer order.

    Lifecycle: pending -> paid -> shipped -> completed, with cancelled as the
    terminal exit. total is derived from the order's items at placement and
    never taken from the client.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('pending', 'paid', 'shipped', 'completed', 'cancelled')",
            name="ck_orders_status",
        ),
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        db.Index("ix_orders_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    shipping_name = db.Column(db.String(255), nullable=False)
    shipping_address = db.Column(db.String(500), nullable=False)
    shipping_phone = db.Column(db.String(50), nullable=False)
    shipping_email = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending")
    payment_type = db.Column(db.String(50), nullable=False)
    payment_proof = db.Column(db.String(500), nullable=True)
    shipping_bill_url = db.Column(db.String(500), nullable=True)

    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "shipping_name": self.shipping_name,
            "shipping_address": self.shipping_address,
            "shipping_phone": self.shipping_phone,
            "shipping_email": self.shipping_email,
            "status": self.status,
            "payment_type": self.payment_type,
            "payment_proof": self.payment_proof,
            "shipping_bill_url": self.shipping_bill_url,
            "total": format_money(self.total),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        db.Index("ix_order_items_order", "order_id"),
        db.Index("ix_order_items_product", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    # Unit price at the time of ordering
    price = db.Column(db.Numeric(12, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "image_url": self.product.image_url if self.product else None,
            "quantity": self.quantity,
            "price": format_money(self.price),
        }
