# Overview: Service-layer operations for employees; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Employee, User
from ..models.auth import USER_STATUSES
from ..validation import ValidationError, is_valid_email
from .auth_service import create_user, ensure_identity_available
from .concurrency import atomic
from .user_service import purge_user

EMPLOYEE_ROLES = ("employee", "staff")
TEXT_LIMITS = {"name": 255, "phone": 50, "position": 100}


class EmployeeError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _clean_text(payload: dict, key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if len(value) > TEXT_LIMITS[key]:
        raise ValidationError(f"{key} exceeds max length {TEXT_LIMITS[key]}")
    return value or None


def list_employees() -> list[Employee]:
    return db.session.query(Employee).order_by(Employee.id.asc()).all()


def add_employee(payload: dict) -> Employee:
    """Create the login account and the employee record together."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    name = _clean_text(payload, "name")
    if not name:
        raise ValidationError("name is required")
    role = payload.get("role") or "employee"
    if role not in EMPLOYEE_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(EMPLOYEE_ROLES)}")

    with atomic():
        user = create_user(
            username=payload.get("username"),
            email=payload.get("email"),
            password=payload.get("password"),
            role=role,
        )
        employee = Employee(
            user_id=user.id,
            name=name,
            email=user.email,
            phone=_clean_text(payload, "phone"),
            position=_clean_text(payload, "position"),
            status="active",
        )
        db.session.add(employee)

    return employee


def edit_employee(employee_id: int, payload: dict) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise EmployeeError("Employee not found", 404)
    if not isinstance(payload, dict) or not payload:
        raise ValidationError("No fields to update")

    unknown = set(payload) - {"name", "email", "phone", "position", "status", "role"}
    if unknown:
        raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")

    user = employee.user
    changes: dict = {}
    for key in ("name", "phone", "position"):
        if key in payload:
            changes[key] = _clean_text(payload, key)
    if "name" in changes and not changes["name"]:
        raise ValidationError("name cannot be blank")

    email = None
    if "email" in payload:
        if not is_valid_email(payload["email"]):
            raise ValidationError("A valid email is required")
        email = payload["email"].strip().lower()
        ensure_identity_available(None, email, exclude_user_id=user.id)

    status = payload.get("status")
    if status is not None and status not in USER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(USER_STATUSES)}")
    role = payload.get("role")
    if role is not None and role not in EMPLOYEE_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(EMPLOYEE_ROLES)}")

    with atomic():
        for key, value in changes.items():
            setattr(employee, key, value)
        if email is not None:
            employee.email = email
            user.email = email
        if status is not None:
            employee.status = status
            user.status = status
        if role is not None:
            user.role = role

    return employee


def delete_employee(employee_id: int) -> None:
    """Remove the employee and its login account in one transaction."""
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise EmployeeError("Employee not found", 404)
    with atomic():
        purge_user(employee.user)
