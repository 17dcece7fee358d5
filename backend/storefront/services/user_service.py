# Overview: Service-layer operations for back-office user and customer administration.

from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from storefront.money import format_money
from ..models import CartItem, Customer, Notification, Order, PasswordResetToken, User
from ..models.auth import USER_ROLES, USER_STATUSES
from ..validation import ConflictError, ValidationError
from .auth_service import ensure_identity_available, normalize_identity
from .concurrency import atomic


class UserAdminError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def list_users(*, search: str | None = None, limit: int = 10, offset: int = 0) -> tuple[list[dict], int]:
    """Non-admin accounts with order count and completed spend."""
    order_count = (
        db.session.query(func.count(Order.id))
        .filter(Order.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    completed_spend = (
        db.session.query(func.coalesce(func.sum(Order.total), 0))
        .filter(Order.user_id == User.id, Order.status == "completed")
        .correlate(User)
        .scalar_subquery()
    )

    query = (
        db.session.query(User, Customer.name, Customer.phone, order_count.label("total_orders"), completed_spend.label("total_spent"))
        .outerjoin(Customer, Customer.user_id == User.id)
        .filter(User.role != "admin")
    )
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            User.username.ilike(pattern),
            User.email.ilike(pattern),
            Customer.name.ilike(pattern),
        ))

    total = query.count()
    rows = query.order_by(User.created_at.desc(), User.id.desc()).limit(limit).offset(offset).all()

    users = []
    for user, name, phone, total_orders, total_spent in rows:
        data = user.to_dict()
        data["name"] = name
        data["phone"] = phone
        data["total_orders"] = total_orders
        data["total_spent"] = format_money(total_spent or 0)
        users.append(data)
    return users, total


def update_user(user_id: int, payload: dict) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise UserAdminError("User not found", 404)
    if not isinstance(payload, dict) or not payload:
        raise ValidationError("No fields to update")

    unknown = set(payload) - {"username", "email", "role", "status"}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    username, email = normalize_identity(
        payload.get("username", user.username),
        payload.get("email", user.email),
    )
    role = payload.get("role", user.role)
    status = payload.get("status", user.status)
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")
    if status not in USER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(USER_STATUSES)}")

    ensure_identity_available(username, email, exclude_user_id=user.id)

    with atomic():
        user.username = username
        user.email = email
        user.role = role
        user.status = status
    return user


def purge_user(user: User) -> None:
    """
    Delete a user and everything hanging off it, inside the caller's transaction.

    Accounts with orders are kept; order history references them.
    """
    has_orders = db.session.query(Order.id).filter(Order.user_id == user.id).first()
    if has_orders:
        raise ConflictError("User has orders and cannot be deleted; set status to inactive instead")

    db.session.query(CartItem).filter(CartItem.user_id == user.id).delete(synchronize_session=False)
    db.session.query(Notification).filter(Notification.user_id == user.id).delete(synchronize_session=False)
    db.session.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).delete(synchronize_session=False)
    if user.customer is not None:
        db.session.delete(user.customer)
    if user.employee is not None:
        db.session.delete(user.employee)
    db.session.delete(user)


def delete_user(user_id: int, actor: User) -> None:
    if user_id == actor.id:
        raise UserAdminError("You cannot delete your own account", 403)
    user = db.session.get(User, user_id)
    if not user:
        raise UserAdminError("User not found", 404)
    with atomic():
        purge_user(user)


def list_customers(*, limit: int = 20, offset: int = 0) -> tuple[list[dict], int]:
    query = (
        db.session.query(Customer, User.username, User.email)
        .join(User, Customer.user_id == User.id)
    )
    total = query.count()
    rows = query.order_by(Customer.created_at.desc(), Customer.id.desc()).limit(limit).offset(offset).all()
    customers = []
    for customer, username, email in rows:
        data = customer.to_dict()
        data["username"] = username
        data["email"] = email
        customers.append(data)
    return customers, total
