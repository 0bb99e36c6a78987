from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text

from timegrid.core.config import get_settings
from timegrid.db.bootstrap import REQUIRED_COLUMNS
from timegrid.db.session import get_engine

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    settings = get_settings()
    storage_ok = True
    missing_tables: list[str] = []
    storage_error: str | None = None

    if settings.storage_backend == "database":
        try:
            with get_engine().connect() as connection:
                connection.execute(text("SELECT 1"))
                table_names = set(inspect(connection).get_table_names())
                missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
        except Exception as exc:  # pragma: no cover - environment dependent
            storage_ok = False
            storage_error = str(exc)

    ready = storage_ok and not missing_tables
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage": {
            "backend": settings.storage_backend,
            "ok": storage_ok,
            "missing_tables": missing_tables,
            "error": storage_error,
        },
        "solver": {
            "mode": settings.solver_mode,
            "url": settings.solver_api_url,
            "fallback_to_greedy": settings.solver_fallback_to_greedy,
            "poll_timeout_seconds": settings.solver_poll_timeout_seconds,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
