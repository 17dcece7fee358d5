# backend/storefront/services/products_service.py
"""
Catalog products: public browsing plus admin create/update/delete.

Stock set here is the admin's manual adjustment; orders move it only
through order_service.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..models import CartItem, Category, Order, OrderItem, Product
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from . import storage_service
from .storage_service import StorageError
from storefront.money import format_money

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "stock_quantity", "category_id", "image_url"},
    required_on_create={"name", "price"},
)

LOW_STOCK_THRESHOLD = 3
PRICE_SORTS = {"lowToHigh": "asc", "highToLow": "desc"}


class CatalogError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def list_products(
    *,
    limit: int = 20,
    offset: int = 0,
    category_id: int | None = None,
    sort_by_price: str | None = None,
    query: str | None = None,
    low_stock: bool = False,
) -> dict:
    """Filtered product page. Returns {"products": [...], "total": n}."""
    if sort_by_price and sort_by_price not in PRICE_SORTS:
        raise ValidationError("sort_by_price must be lowToHigh or highToLow")

    base_query = db.session.query(Product)
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if query:
        pattern = f"%{query.strip()}%"
        base_query = base_query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    if low_stock:
        base_query = base_query.filter(Product.stock_quantity < LOW_STOCK_THRESHOLD)

    total = base_query.count()

    if sort_by_price == "lowToHigh":
        base_query = base_query.order_by(Product.price.asc(), Product.id.asc())
    elif sort_by_price == "highToLow":
        base_query = base_query.order_by(Product.price.desc(), Product.id.asc())
    else:
        base_query = base_query.order_by(Product.created_at.desc(), Product.id.desc())

    products = base_query.limit(limit).offset(offset).all()
    return {"products": [p.to_dict() for p in products], "total": total}


def search_products(query: str, limit: int = 50) -> list[dict]:
    if not query or not query.strip():
        raise ValidationError("query is required")
    return list_products(query=query, limit=limit)["products"]


def new_arrivals(limit: int = 5) -> list[dict]:
    products = (
        db.session.query(Product)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .all()
    )
    return [p.to_dict() for p in products]


def top_selling(limit: int = 5) -> list[dict]:
    """Best sellers by units over completed orders."""
    sold = func.sum(OrderItem.quantity).label("total_sold")
    rows = (
        db.session.query(Product, sold)
        .join(OrderItem, OrderItem.product_id == Product.id)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(Order.status == "completed")
        .group_by(Product.id)
        .order_by(sold.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    result = []
    for product, total_sold in rows:
        data = product.to_dict()
        data["total_sold"] = int(total_sold or 0)
        result.append(data)
    return result


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise CatalogError("Product not found", 404)
    return product


def _check_category(patch: dict) -> None:
    category_id = patch.get("category_id")
    if category_id is not None and not db.session.get(Category, category_id):
        raise ValidationError(f"Category {category_id} does not exist")


def create_product(payload: dict, image_file=None) -> Product:
    """
    Create a product. An attached image that fails to upload is logged and
    the product is saved without one.
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _check_category(patch)

    if image_file is not None and image_file.filename:
        try:
            patch["image_url"] = storage_service.upload_image(image_file, "products")
        except StorageError as e:
            current_app.logger.warning("Product image upload failed, saving without image: %s", e)

    product = Product(**patch)
    if product.stock_quantity is None:
        product.stock_quantity = 0
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict, image_file=None) -> Product:
    """Patch a product. A replacement image must upload or the update fails."""
    product = get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    _check_category(patch)

    old_image = product.image_url
    if image_file is not None and image_file.filename:
        patch["image_url"] = storage_service.upload_image(image_file, "products")

    if not patch:
        raise ValidationError("No fields to update")

    for key, value in patch.items():
        setattr(product, key, value)
    db.session.commit()

    if old_image and "image_url" in patch and patch["image_url"] != old_image:
        _discard_image(old_image)
    return product


def delete_product(product_id: int) -> None:
    product = get_product(product_id)
    in_orders = db.session.query(OrderItem.id).filter(OrderItem.product_id == product.id).first()
    if in_orders:
        raise ConflictError("Product appears in orders and cannot be deleted")

    image_url = product.image_url
    db.session.query(CartItem).filter(CartItem.product_id == product.id).delete(synchronize_session=False)
    db.session.delete(product)
    db.session.commit()
    if image_url:
        _discard_image(image_url)


def _discard_image(url: str) -> None:
    try:
        storage_service.delete_file(url)
    except StorageError as e:
        current_app.logger.warning("Could not delete product image %s: %s", url, e)


def stock_summary() -> dict:
    """Counts for the admin dashboard."""
    low = db.session.query(func.count(Product.id)).filter(Product.stock_quantity < LOW_STOCK_THRESHOLD).scalar()
    out = db.session.query(func.count(Product.id)).filter(Product.stock_quantity == 0).scalar()
    value = db.session.query(func.coalesce(func.sum(Product.price * Product.stock_quantity), 0)).scalar()
    return {"low_stock": low, "out_of_stock": out, "stock_value": format_money(value)}
