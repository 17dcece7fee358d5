# Overview: Request payload validation driven by SQLAlchemy column metadata, plus order intake checks.

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeMeta

from storefront.money import MAX_PRICE, to_decimal
from storefront.time_utils import parse_iso_datetime

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_PASSWORD_LENGTH = 6


class ValidationError(ValueError):
    """
    400-level input problem.

    field_errors carries per-field messages when more than one input failed.
    """

    def __init__(self, message: str, field_errors: list[dict] | None = None):
        super().__init__(message)
        self.field_errors = field_errors or []

    def to_dict(self) -> dict:
        if self.field_errors:
            return {"error": str(self), "errors": self.field_errors}
        return {"error": str(self)}


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    # Money
    if isinstance(coltype, Numeric):
        try:
            return to_decimal(value)
        except ValueError:
            raise ValidationError(f"{col.key} must be a number")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # Multipart forms cannot send null; an empty value clears nullable columns
        if raw == "" and col.nullable and not isinstance(col.type, (String, Text)):
            raw = None

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    """
    if "price" in patch and patch["price"] is not None:
        price = patch["price"]
        if price <= 0:
            raise ValidationError("price must be > 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    if "stock_quantity" in patch and patch["stock_quantity"] is not None:
        if patch["stock_quantity"] < 0:
            raise ValidationError("stock_quantity must be >= 0")

    if "category_id" in patch and patch["category_id"] is not None:
        if patch["category_id"] <= 0:
            raise ValidationError("category_id must be a positive integer")


def enforce_rules_category(patch: dict) -> None:
    if "parent_id" in patch and patch["parent_id"] is not None:
        if patch["parent_id"] <= 0:
            raise ValidationError("parent_id must be a positive integer")
    if patch.get("image_url"):
        if not patch["image_url"].startswith(("http://", "https://")):
            raise ValidationError("image_url must be an http(s) URL")


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and len(value) <= 255 and bool(EMAIL_RE.match(value.strip()))


def validate_password(password: Any, field_name: str = "password") -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"{field_name} must be at least {MIN_PASSWORD_LENGTH} characters long")
    return password


def parse_positive_int(value: Any, field_name: str) -> int:
    """Accept ints and digit strings; reject bools, floats and anything <= 0."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a positive integer")
    if isinstance(value, int):
        result = value
    elif isinstance(value, str) and value.strip().isdigit():
        result = int(value.strip())
    else:
        raise ValidationError(f"{field_name} must be a positive integer")
    if result <= 0:
        raise ValidationError(f"{field_name} must be a positive integer")
    return result


def parse_json_field(raw: Any, field_name: str) -> Any:
    """Multipart order submissions carry nested structures as JSON text."""
    if isinstance(raw, str):
        try:
            return json.loads(raw)
        except ValueError:
            raise ValidationError(f"{field_name} must be valid JSON")
    return raw


# -- Order intake --

SHIPPING_LIMITS = {
    "name": 255,
    "address": 500,
    "phone": 50,
    "email": 255,
}
MAX_PAYMENT_TYPE_LENGTH = 50


@dataclass(frozen=True)
class OrderLineInput:
    product_id: int
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class ShippingInput:
    name: str
    address: str
    phone: str
    email: str


@dataclass(frozen=True)
class OrderInput:
    user_id: int
    items: list[OrderLineInput]
    shipping: ShippingInput
    payment_type: str


def validate_order_request(
    *,
    user_id: Any,
    items: Any,
    shipping: Any,
    payment_type: Any,
) -> OrderInput:
    """
    Check the shape of an order submission before anything touches the database.

    Collects every field problem and raises a single ValidationError listing them.
    """
    errors: list[dict] = []

    def fail(field_name: str, msg: str) -> None:
        errors.append({"field": field_name, "msg": msg})

    parsed_user_id = None
    try:
        parsed_user_id = parse_positive_int(user_id, "userId")
    except ValidationError as e:
        fail("userId", str(e))

    lines: list[OrderLineInput] = []
    if not isinstance(items, list) or not items:
        fail("items", "items must be a non-empty list")
    else:
        for idx, raw in enumerate(items):
            prefix = f"items[{idx}]"
            if not isinstance(raw, dict):
                fail(prefix, "item must be an object")
                continue
            try:
                product_id = parse_positive_int(raw.get("product_id", raw.get("id")), "product_id")
                quantity = parse_positive_int(raw.get("quantity"), "quantity")
            except ValidationError as e:
                fail(prefix, str(e))
                continue
            try:
                price = to_decimal(raw.get("price"))
            except ValueError:
                fail(f"{prefix}.price", "price must be a number")
                continue
            if price <= 0:
                fail(f"{prefix}.price", "price must be > 0")
                continue
            lines.append(OrderLineInput(product_id=product_id, quantity=quantity, price=price))

    clean_shipping: dict[str, str] = {}
    if not isinstance(shipping, dict):
        fail("shipping", "shipping must be an object")
    else:
        for key, limit in SHIPPING_LIMITS.items():
            value = shipping.get(key)
            value = value.strip() if isinstance(value, str) else ""
            if not value:
                fail(f"shipping.{key}", f"shipping {key} is required")
            elif len(value) > limit:
                fail(f"shipping.{key}", f"shipping {key} exceeds max length {limit}")
            elif key == "email" and not is_valid_email(value):
                fail("shipping.email", "shipping email is invalid")
            else:
                clean_shipping[key] = value

    clean_payment_type = payment_type.strip() if isinstance(payment_type, str) else ""
    if not clean_payment_type:
        fail("payment_type", "payment_type is required")
    elif len(clean_payment_type) > MAX_PAYMENT_TYPE_LENGTH:
        fail("payment_type", f"payment_type exceeds max length {MAX_PAYMENT_TYPE_LENGTH}")

    if errors:
        raise ValidationError("Invalid order request", field_errors=errors)

    return OrderInput(
        user_id=parsed_user_id,
        items=lines,
        shipping=ShippingInput(**clean_shipping),
        payment_type=clean_payment_type,
    )
