from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.models.schedule_run import ScheduleRun
from app.schemas.schedule import ScheduleResult, ScheduleRunOut, ScheduleRunSummary

logger = logging.getLogger(__name__)


def default_run_label() -> str:
    return f"run-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"


def summarize(result: ScheduleResult) -> dict:
    return {
        "courses": len(result.assignments),
        "students": len(result.student_schedules),
        "totalRequests": result.statistics.total_requests,
        "resolvedRequests": result.statistics.resolved_requests,
        "overallResolutionRate": result.statistics.overall_resolution_rate,
        "warnings": len(result.validation.warnings),
        "refinementConverged": result.refinement.converged,
    }


def save_run(db: Session, *, result: ScheduleResult, label: str | None = None) -> ScheduleRun:
    record = ScheduleRun(
        label=label or default_run_label(),
        random_seed=result.options_used.random_seed,
        payload=result.model_dump(mode="json", by_alias=True),
        summary=summarize(result),
    )
    db.add(record)
    db.flush()
    logger.info("SCHEDULE RUN STORED | run_id=%s | label=%s", record.id, record.label)
    return record


def list_runs(db: Session, *, limit: int = 50) -> list[ScheduleRunSummary]:
    records = db.execute(select(ScheduleRun).order_by(ScheduleRun.created_at.desc()).limit(limit)).scalars().all()
    return [
        ScheduleRunSummary(id=record.id, label=record.label, summary=record.summary, created_at=record.created_at)
        for record in records
    ]


def get_run(db: Session, run_id: str) -> ScheduleRunOut:
    record = db.get(ScheduleRun, run_id)
    if record is None:
        raise ResourceNotFoundError("Schedule run", run_id)
    return ScheduleRunOut(
        id=record.id,
        label=record.label,
        summary=record.summary,
        created_at=record.created_at,
        result=ScheduleResult.model_validate(record.payload),
    )
