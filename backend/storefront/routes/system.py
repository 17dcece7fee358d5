# backend/storefront/routes/system.py
"""Liveness and database health."""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception as e:
        current_app.logger.warning("Database health check failed: %s", e)
        db.session.rollback()
        return {"status": "unhealthy", "error": str(e)}


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    return {
        "status": "ok" if healthy else "degraded",
        "checks": {"database": database},
    }, 200 if healthy else 503
