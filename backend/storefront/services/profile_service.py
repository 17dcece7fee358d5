# Overview: Service-layer operations for the signed-in user's profile.

from __future__ import annotations

from ..extensions import db
from ..models import Customer, User
from ..validation import ValidationError, is_valid_email
from .auth_service import ensure_identity_available
from .concurrency import atomic

PROFILE_LIMITS = {"name": 255, "phone": 50, "address": 500}


def get_profile(user: User) -> dict:
    return user.to_dict(include_customer=True)


def update_profile(user: User, payload: dict) -> User:
    """
    Update email on the user and name/phone/address on the customer profile.

    Both tables change in one transaction; the customer row is created on
    first save if the account never had one.
    """
    if not isinstance(payload, dict) or not payload:
        raise ValidationError("No fields to update")

    unknown = set(payload) - {"email", *PROFILE_LIMITS}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    email = payload.get("email")
    if email is not None:
        if not is_valid_email(email):
            raise ValidationError("A valid email is required")
        email = email.strip().lower()
        ensure_identity_available(None, email, exclude_user_id=user.id)

    profile_patch = {}
    for key, limit in PROFILE_LIMITS.items():
        if key not in payload:
            continue
        value = payload[key]
        if value is not None:
            value = str(value).strip()
            if len(value) > limit:
                raise ValidationError(f"{key} exceeds max length {limit}")
        profile_patch[key] = value or None

    with atomic():
        if email is not None:
            user.email = email
        if profile_patch:
            customer = db.session.query(Customer).filter_by(user_id=user.id).first()
            if customer is None:
                customer = Customer(user_id=user.id)
                db.session.add(customer)
            for key, value in profile_patch.items():
                setattr(customer, key, value)

    return user
