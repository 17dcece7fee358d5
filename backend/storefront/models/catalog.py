from __future__ import annotations

from ..extensions import db
from storefront.money import format_money
from storefront.time_utils import to_utc_z


class Category(db.Model):
    """
    Product category. One level of nesting: a parent is always top-level.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_parent", "parent_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    image_url = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price > 0", name="ck_products_price_positive"),
        db.Index("ix_products_category", "category_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    image_url = db.Column(db.String(500), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": format_money(self.price),
            "stock_quantity": self.stock_quantity,
            "image_url": self.image_url,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
