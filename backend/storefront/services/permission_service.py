# Overview: Service-layer operations for permission; evaluates the role policy table.

"""
Role-based access control.

Every protected route names one permission code; a user holds it when the
(role, code) pair appears in storefront.permissions.DEFAULT_ROLE_PERMISSIONS.
Fail closed: unknown roles and unknown codes are denied. Denials are logged.
"""

from flask import current_app

from ..models import User
from ..permissions import DEFAULT_ROLE_PERMISSIONS, role_allows, validate_permission_code


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""
    pass


def get_role_permissions(role: str) -> set[str]:
    return set(DEFAULT_ROLE_PERMISSIONS.get(role, ()))


def user_has_permission(user: User, permission_code: str) -> bool:
    if user is None or not user.is_active:
        return False
    return role_allows(user.role, permission_code)


def require_permission(user: User, permission_code: str, resource: str | None = None) -> None:
    """
    Raise PermissionDeniedError unless user holds permission_code.
    """
    if not validate_permission_code(permission_code):
        # Misconfigured route; deny rather than guess
        current_app.logger.error("Unknown permission code %s required by %s", permission_code, resource)
        raise PermissionDeniedError(f"Unknown permission: {permission_code}")

    if not user_has_permission(user, permission_code):
        current_app.logger.warning(
            "Permission denied: user=%s role=%s permission=%s resource=%s",
            user.id if user else None,
            user.role if user else None,
            permission_code,
            resource,
        )
        raise PermissionDeniedError(f"Missing permission: {permission_code}")
