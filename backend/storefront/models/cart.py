from __future__ import annotations

from ..extensions import db
from storefront.money import format_money, to_decimal
from storefront.time_utils import to_utc_z


class CartItem(db.Model):
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "product_id", name="uq_cart_items_user_product"),
        db.CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("cart_items", lazy=True, passive_deletes=True))

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "name": product.name if product else None,
            "price": format_money(product.price) if product else None,
            "image_url": product.image_url if product else None,
            "stock_quantity": product.stock_quantity if product else None,
            "line_total": format_money(to_decimal(product.price) * self.quantity) if product else None,
            "created_at": to_utc_z(self.created_at),
        }
