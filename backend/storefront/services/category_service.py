# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, ValidationError, enforce_rules_category, validate_payload
from .concurrency import atomic

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "parent_id", "image_url"},
    required_on_create={"name"},
)


class CategoryError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc(), Category.id.asc()).all()


def _check_parent(category: Category | None, parent_id: int | None) -> None:
    """Categories nest one level deep."""
    if parent_id is None:
        return
    if category is not None and category.id == parent_id:
        raise ValidationError("A category cannot be its own parent")
    parent = db.session.get(Category, parent_id)
    if not parent:
        raise ValidationError(f"Parent category {parent_id} does not exist")
    if parent.parent_id is not None:
        raise ValidationError("Parent category must be a top-level category")
    if category is not None and category.children:
        raise ValidationError("A category with subcategories cannot become a subcategory")


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
    enforce_rules_category(patch)
    _check_parent(None, patch.get("parent_id"))

    category = Category(**patch)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, payload: dict) -> Category:
    category = db.session.get(Category, category_id)
    if not category:
        raise CategoryError("Category not found", 404)

    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    enforce_rules_category(patch)
    if "parent_id" in patch:
        _check_parent(category, patch["parent_id"])

    for key, value in patch.items():
        setattr(category, key, value)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """Delete a category; its products and subcategories are left uncategorized."""
    category = db.session.get(Category, category_id)
    if not category:
        raise CategoryError("Category not found", 404)

    with atomic():
        db.session.query(Product).filter(Product.category_id == category.id).update(
            {Product.category_id: None}, synchronize_session="fetch"
        )
        db.session.query(Category).filter(Category.parent_id == category.id).update(
            {Category.parent_id: None}, synchronize_session="fetch"
        )
        db.session.delete(category)
