# Overview: Authorization policy table mapping each role to the permission codes it holds.
# Anything not listed for a role is denied.

from .definitions import PERMISSION_DEFINITIONS


CUSTOMER_PERMISSIONS = frozenset({
    "PLACE_ORDER",
    "VIEW_OWN_ORDERS",
    "CANCEL_OWN_ORDER",
    "USE_CART",
    "EDIT_PROFILE",
    "VIEW_OWN_NOTIFICATIONS",
})

# Employees shop like customers and can look up orders at the counter
EMPLOYEE_PERMISSIONS = CUSTOMER_PERMISSIONS | {
    "VIEW_ALL_ORDERS",
}

STAFF_PERMISSIONS = EMPLOYEE_PERMISSIONS | {
    "UPDATE_ORDER_STATUS",
    "EDIT_ORDER",
    "MANAGE_SHIPPING_BILLS",
    "MANAGE_CATEGORIES",
    "UPLOAD_IMAGES",
}

ADMIN_PERMISSIONS = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)


DEFAULT_ROLE_PERMISSIONS = {
    "customer": CUSTOMER_PERMISSIONS,
    "employee": EMPLOYEE_PERMISSIONS,
    "staff": STAFF_PERMISSIONS,
    "admin": ADMIN_PERMISSIONS,
}
