# Overview: Service-layer operations for the shopping cart; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import CartItem, Product
from ..validation import ValidationError, parse_positive_int


class CartError(Exception):
    """Raised for cart operation errors."""
    def __init__(self, message: str, status_code: int = 400, details: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


def get_cart(user_id: int) -> list[CartItem]:
    return (
        db.session.query(CartItem)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
        .all()
    )


def count_items(user_id: int) -> int:
    """Total units in the cart (what the header badge shows)."""
    return int(
        db.session.query(func.coalesce(func.sum(CartItem.quantity), 0))
        .filter(CartItem.user_id == user_id)
        .scalar()
    )


def _check_stock(product: Product, quantity: int) -> None:
    if quantity > product.stock_quantity:
        raise CartError(
            f"Insufficient stock for {product.name}. Available: {product.stock_quantity}, Requested: {quantity}",
            details={"product_id": product.id, "available": product.stock_quantity, "requested": quantity},
        )


def add_item(user_id: int, product_id, quantity=1) -> tuple[CartItem, bool]:
    """
    Add quantity of a product, merging with an existing line.

    Returns (item, created).
    """
    product_id = parse_positive_int(product_id, "productId")
    quantity = parse_positive_int(quantity, "quantity")

    product = db.session.get(Product, product_id)
    if not product:
        raise CartError("Product not found", 404)

    item = db.session.query(CartItem).filter_by(user_id=user_id, product_id=product_id).first()
    new_quantity = quantity + (item.quantity if item else 0)
    _check_stock(product, new_quantity)

    created = item is None
    if created:
        item = CartItem(user_id=user_id, product_id=product_id, quantity=new_quantity)
        db.session.add(item)
    else:
        item.quantity = new_quantity
    db.session.commit()
    return item, created


def _owned_item(user_id: int, cart_item_id: int) -> CartItem:
    item = db.session.get(CartItem, cart_item_id)
    if not item:
        raise CartError("Cart item not found", 404)
    if item.user_id != user_id:
        raise CartError("Not your cart item", 403)
    return item


def update_quantity(user_id: int, cart_item_id: int, quantity) -> CartItem:
    if quantity is None:
        raise ValidationError("quantity is required")
    quantity = parse_positive_int(quantity, "quantity")
    item = _owned_item(user_id, cart_item_id)
    _check_stock(item.product, quantity)
    item.quantity = quantity
    db.session.commit()
    return item


def remove_item(user_id: int, cart_item_id: int) -> None:
    item = _owned_item(user_id, cart_item_id)
    db.session.delete(item)
    db.session.commit()


def clear_cart(user_id: int) -> int:
    removed = db.session.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
    db.session.commit()
    return removed
