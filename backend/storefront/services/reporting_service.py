# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, Product, User
from . import products_service
from storefront.money import format_money
from storefront.time_utils import parse_day_range, to_utc_z

GROUPINGS = ("day", "week", "month", "year")

# SQLite and PostgreSQL spell period bucketing differently
_SQLITE_FORMATS = {"day": "%Y-%m-%d", "week": "%Y-W%W", "month": "%Y-%m", "year": "%Y"}
_POSTGRES_FORMATS = {"day": "YYYY-MM-DD", "week": "IYYY-\"W\"IW", "month": "YYYY-MM", "year": "YYYY"}


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _period_expr(group_by: str, column):
    if db.engine.dialect.name == "sqlite":
        return func.strftime(_SQLITE_FORMATS[group_by], column)
    return func.to_char(func.date_trunc(group_by, column), _POSTGRES_FORMATS[group_by])


def dashboard_stats() -> dict:
    completed_sales = (
        db.session.query(func.coalesce(func.sum(Order.total), 0))
        .filter(Order.status == "completed")
        .scalar()
    )
    stats = {
        "total_users": db.session.query(func.count(User.id)).filter(User.role != "admin").scalar(),
        "total_products": db.session.query(func.count(Product.id)).scalar(),
        "total_orders": db.session.query(func.count(Order.id)).scalar(),
        "pending_orders": db.session.query(func.count(Order.id)).filter(Order.status == "pending").scalar(),
        "total_sales": format_money(completed_sales),
    }
    stats.update(products_service.stock_summary())
    return stats


def sales_analytics(*, group_by: str = "day", start: str | None = None, end: str | None = None) -> dict:
    """Completed-order revenue and units per period."""
    if group_by not in GROUPINGS:
        raise ReportError(f"group must be one of: {', '.join(GROUPINGS)}")
    try:
        start_dt, end_dt = parse_day_range(start, end)
    except ValueError:
        raise ReportError("start and end must be YYYY-MM-DD")

    period_expr = _period_expr(group_by, Order.created_at)
    query = db.session.query(
        period_expr.label("period"),
        func.count(func.distinct(Order.id)).label("orders"),
        func.coalesce(func.sum(OrderItem.quantity), 0).label("items_sold"),
        func.coalesce(func.sum(OrderItem.price * OrderItem.quantity), 0).label("revenue"),
    ).join(OrderItem, OrderItem.order_id == Order.id).filter(Order.status == "completed")

    if start_dt:
        query = query.filter(Order.created_at >= start_dt)
    if end_dt:
        query = query.filter(Order.created_at < end_dt)

    rows = query.group_by("period").order_by("period").all()
    return {
        "group": group_by,
        "start": to_utc_z(start_dt),
        "end": to_utc_z(end_dt),
        "rows": [
            {
                "period": row.period,
                "orders": int(row.orders or 0),
                "items_sold": int(row.items_sold or 0),
                "revenue": format_money(row.revenue or 0),
            }
            for row in rows
        ],
    }


def top_products_by_revenue(limit: int = 5) -> list[dict]:
    """Best sellers across all non-cancelled orders, ranked by revenue."""
    revenue = func.sum(OrderItem.price * OrderItem.quantity).label("revenue")
    rows = (
        db.session.query(
            Product.id,
            Product.name,
            Product.image_url,
            func.sum(OrderItem.quantity).label("quantity_sold"),
            revenue,
        )
        .join(OrderItem, OrderItem.product_id == Product.id)
        .join(Order, OrderItem.order_id == Order.id)
        .filter(Order.status != "cancelled")
        .group_by(Product.id, Product.name, Product.image_url)
        .order_by(revenue.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": row.id,
            "name": row.name,
            "image_url": row.image_url,
            "quantity_sold": int(row.quantity_sold or 0),
            "revenue": format_money(row.revenue or 0),
        }
        for row in rows
    ]
