from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_db
from app.core.config import Settings
from app.db.bootstrap import REQUIRED_COLUMNS

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    db_ok = True
    db_error: str | None = None
    missing_tables: list[str] = []
    try:
        db.execute(text("SELECT 1"))
        bind = db.get_bind()
        table_names = set(inspect(bind).get_table_names())
        missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    except Exception as exc:  # pragma: no cover - environment dependent
        db_ok = False
        db_error = str(exc)

    ready = db_ok and not missing_tables
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": {
            "ok": db_ok,
            "schema_ok": not missing_tables,
            "missing_tables": missing_tables,
            "error": db_error,
        },
        "scheduling": {
            "blocks": settings.blocks,
            "refinement_strategy": settings.refinement_strategy,
            "tie_break": settings.tie_break,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
