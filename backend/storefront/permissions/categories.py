# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for grouping and CLI display."""
    ORDERS = "ORDERS"
    CATALOG = "CATALOG"
    SHOPPING = "SHOPPING"
    NOTIFICATIONS = "NOTIFICATIONS"
    USERS = "USERS"
    REPORTS = "REPORTS"
