# Overview: Flask API routes for administration; parses input and returns JSON responses.

# backend/storefront/routes/admin.py
"""
Back-office routes: dashboard numbers, sales analytics, user and customer
administration.
"""

from flask import Blueprint, g, request

from ..decorators import require_auth, require_permission
from ..services import reporting_service, user_service
from ..services.reporting_service import ReportError
from ..services.user_service import UserAdminError
from ..validation import ConflictError, ValidationError
from .helpers import page_args

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# =============================================================================
# REPORTS
# =============================================================================

@admin_bp.get("/stats")
@require_auth
@require_permission("VIEW_REPORTS")
def stats_route():
    return reporting_service.dashboard_stats(), 200


@admin_bp.get("/sales-analytics")
@require_auth
@require_permission("VIEW_REPORTS")
def sales_analytics_route():
    """
    Query params:
    - group: day | week | month | year (default day)
    - start, end: YYYY-MM-DD, both inclusive
    """
    try:
        report = reporting_service.sales_analytics(
            group_by=request.args.get("group", "day"),
            start=request.args.get("start"),
            end=request.args.get("end"),
        )
    except ReportError as e:
        return {"error": str(e)}, 400
    return report, 200


@admin_bp.get("/top-selling-products")
@require_auth
@require_permission("VIEW_REPORTS")
def top_selling_products_route():
    return {"products": reporting_service.top_products_by_revenue()}, 200


# =============================================================================
# USERS
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_permission("VIEW_USERS")
def list_users_route():
    limit, offset = page_args(default_limit=10)
    users, total = user_service.list_users(
        search=request.args.get("search") or None,
        limit=limit,
        offset=offset,
    )
    return {"users": users, "total": total, "limit": limit, "offset": offset}, 200


@admin_bp.put("/users/<int:user_id>")
@require_auth
@require_permission("EDIT_USER")
def update_user_route(user_id: int):
    try:
        user = user_service.update_user(user_id, request.get_json(silent=True) or {})
    except ValidationError as e:
        return e.to_dict(), 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except UserAdminError as e:
        return {"error": str(e)}, e.status_code
    return {"user": user.to_dict()}, 200


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission("DELETE_USER")
def delete_user_route(user_id: int):
    try:
        user_service.delete_user(user_id, g.current_user)
    except UserAdminError as e:
        return {"error": str(e)}, e.status_code
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"message": "User deleted"}, 200


@admin_bp.get("/customers")
@require_auth
@require_permission("VIEW_CUSTOMERS")
def list_customers_route():
    limit, offset = page_args()
    customers, total = user_service.list_customers(limit=limit, offset=offset)
    return {"customers": customers, "total": total, "limit": limit, "offset": offset}, 200
