# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    ORDER_PERMISSIONS,
    CATALOG_PERMISSIONS,
    SHOPPING_PERMISSIONS,
    NOTIFICATION_PERMISSIONS,
    USER_PERMISSIONS,
    REPORT_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    get_all_permission_codes,
    get_permission_definition,
    validate_permission_code,
    role_allows,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "ORDER_PERMISSIONS",
    "CATALOG_PERMISSIONS",
    "SHOPPING_PERMISSIONS",
    "NOTIFICATION_PERMISSIONS",
    "USER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "get_all_permission_codes",
    "get_permission_definition",
    "validate_permission_code",
    "role_allows",
]
