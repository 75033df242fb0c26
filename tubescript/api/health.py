"""
Health endpoints.

Lightweight liveness and readiness probes without exposing secrets.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import inspect

from tubescript.core.database import get_engine

logger = logging.getLogger("tubescript")

router = APIRouter(tags=["health"])

REQUIRED_TABLES = ["app_users", "billing_events"]


@router.get("/healthz")
def healthz():
    """Liveness check (no deps)."""
    return {"status": "ok"}


@router.get("/readyz")
def readyz(request: Request):
    """Readiness check: DB connectivity + required tables + provider name."""
    try:
        engine = get_engine()
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

        inspector = inspect(engine)
        missing = [t for t in REQUIRED_TABLES if not inspector.has_table(t)]
    except Exception as e:
        logger.error(f"[readyz] readiness check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": "database unreachable"})

    if missing:
        detail = f"missing tables: {', '.join(missing)}"
        logger.warning(f"[readyz] {detail}")
        return JSONResponse(status_code=503, content={"status": "error", "detail": detail})

    provider = getattr(request.app.state, "provider", None)
    return {
        "status": "ok",
        "provider": getattr(provider, "name", None),
        "billing_enabled": bool(getattr(getattr(request.app.state, "billing", None), "enabled", False)),
    }
