# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- ORDERS --

ORDER_PERMISSIONS = [
    (
        "PLACE_ORDER",
        "Place Order",
        "Submit an order for the authenticated account",
        PermissionCategory.ORDERS,
    ),
    (
        "VIEW_OWN_ORDERS",
        "View Own Orders",
        "List and open orders placed by the authenticated account",
        PermissionCategory.ORDERS,
    ),
    (
        "CANCEL_OWN_ORDER",
        "Cancel Own Order",
        "Cancel a pending order placed by the authenticated account",
        PermissionCategory.ORDERS,
    ),
    (
        "CANCEL_ANY_ORDER",
        "Cancel Any Order",
        "Cancel a pending order on behalf of any customer",
        PermissionCategory.ORDERS,
    ),
    (
        "VIEW_ALL_ORDERS",
        "View All Orders",
        "Browse and filter every customer's orders",
        PermissionCategory.ORDERS,
    ),
    (
        "UPDATE_ORDER_STATUS",
        "Update Order Status",
        "Move orders between pending, paid, shipped, completed and cancelled",
        PermissionCategory.ORDERS,
    ),
    (
        "EDIT_ORDER",
        "Edit Order",
        "Correct shipping and payment details on an order",
        PermissionCategory.ORDERS,
    ),
    (
        "DELETE_ORDER",
        "Delete Order",
        "Permanently remove an order, its items and notifications",
        PermissionCategory.ORDERS,
    ),
    (
        "MANAGE_SHIPPING_BILLS",
        "Manage Shipping Bills",
        "Attach or remove the courier bill for an order",
        PermissionCategory.ORDERS,
    ),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "MANAGE_PRODUCTS",
        "Manage Products",
        "Create, edit and delete products and their stock levels",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_CATEGORIES",
        "Manage Categories",
        "Create and edit product categories",
        PermissionCategory.CATALOG,
    ),
    (
        "DELETE_CATEGORY",
        "Delete Category",
        "Delete product categories",
        PermissionCategory.CATALOG,
    ),
    (
        "UPLOAD_IMAGES",
        "Upload Images",
        "Upload catalog images to object storage",
        PermissionCategory.CATALOG,
    ),
]


# -- SHOPPING --

SHOPPING_PERMISSIONS = [
    (
        "USE_CART",
        "Use Cart",
        "Maintain a personal shopping cart",
        PermissionCategory.SHOPPING,
    ),
    (
        "EDIT_PROFILE",
        "Edit Profile",
        "View and update the authenticated account's profile",
        PermissionCategory.SHOPPING,
    ),
]


# -- NOTIFICATIONS --

NOTIFICATION_PERMISSIONS = [
    (
        "VIEW_OWN_NOTIFICATIONS",
        "View Own Notifications",
        "Read notifications addressed to the authenticated account",
        PermissionCategory.NOTIFICATIONS,
    ),
    (
        "VIEW_ADMIN_NOTIFICATIONS",
        "View Admin Notifications",
        "Read and acknowledge back-office notifications",
        PermissionCategory.NOTIFICATIONS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "VIEW_USERS",
        "View Users",
        "List and search user accounts",
        PermissionCategory.USERS,
    ),
    (
        "EDIT_USER",
        "Edit User",
        "Change username, email, role or status of an account",
        PermissionCategory.USERS,
    ),
    (
        "DELETE_USER",
        "Delete User",
        "Delete user accounts without order history",
        PermissionCategory.USERS,
    ),
    (
        "VIEW_CUSTOMERS",
        "View Customers",
        "List customer profiles",
        PermissionCategory.USERS,
    ),
    (
        "MANAGE_EMPLOYEES",
        "Manage Employees",
        "Create, edit and delete employee accounts",
        PermissionCategory.USERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "VIEW_REPORTS",
        "View Reports",
        "Dashboard statistics, sales analytics and best sellers",
        PermissionCategory.REPORTS,
    ),
]


PERMISSION_DEFINITIONS = (
    ORDER_PERMISSIONS
    + CATALOG_PERMISSIONS
    + SHOPPING_PERMISSIONS
    + NOTIFICATION_PERMISSIONS
    + USER_PERMISSIONS
    + REPORT_PERMISSIONS
)
