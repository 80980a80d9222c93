import logging
from time import perf_counter

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_app_settings, get_db, resolve_options
from app.core.config import Settings
from app.schemas.schedule import GenerateScheduleResponse, ScheduleRunOut, ScheduleRunSummary
from app.schemas.scheduling import GenerateScheduleRequest
from app.services.block_scheduler import generate_schedule
from app.services.schedule_runs import get_run, list_runs, save_run

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=GenerateScheduleResponse, response_model_by_alias=True)
def generate(
    payload: GenerateScheduleRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> GenerateScheduleResponse:
    started = perf_counter()
    options = resolve_options(payload.options, settings)
    logger.info(
        "SCHEDULE GENERATION START | courses=%s | students=%s | persist=%s | refinement=%s | seed=%s",
        len(payload.catalog.courses),
        len(payload.catalog.students),
        payload.persist,
        options.refinement_strategy,
        options.random_seed,
    )
    try:
        result = generate_schedule(payload.catalog, options, default_blocks=settings.blocks)
        response = GenerateScheduleResponse(result=result)
        if payload.persist:
            record = save_run(db, result=result, label=payload.label)
            db.commit()
            response.run_id = record.id
            response.label = record.label
    except Exception:
        db.rollback()
        logger.exception(
            "SCHEDULE GENERATION FAILED | courses=%s | wall_ms=%s",
            len(payload.catalog.courses),
            int((perf_counter() - started) * 1000),
        )
        raise
    logger.info(
        "SCHEDULE GENERATION COMPLETE | run_id=%s | rate=%s | wall_ms=%s",
        response.run_id,
        result.statistics.overall_resolution_rate,
        int((perf_counter() - started) * 1000),
    )
    return response


@router.get("", response_model=list[ScheduleRunSummary], response_model_by_alias=True)
def index(limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)) -> list[ScheduleRunSummary]:
    return list_runs(db, limit=limit)


@router.get("/{run_id}", response_model=ScheduleRunOut, response_model_by_alias=True)
def show(run_id: str, db: Session = Depends(get_db)) -> ScheduleRunOut:
    return get_run(db, run_id)
