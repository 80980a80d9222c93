import logging

from fastapi import APIRouter, Depends

from app.api.deps import get_app_settings
from app.core.config import Settings
from app.schemas.catalog import Catalog
from app.schemas.ingestion import WorkbookRows
from app.schemas.schedule import ValidationReport
from app.services.ingestion import catalog_from_rows
from app.services.validation import validate_catalog

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/validate", response_model=ValidationReport, response_model_by_alias=True)
def validate(payload: Catalog, settings: Settings = Depends(get_app_settings)) -> ValidationReport:
    blocks = list(payload.blocks or settings.blocks)
    return validate_catalog(payload, blocks)


@router.post("/import", response_model=Catalog, response_model_by_alias=True)
def import_rows(payload: WorkbookRows, settings: Settings = Depends(get_app_settings)) -> Catalog:
    logger.info(
        "CATALOG IMPORT START | course_rows=%s | request_rows=%s",
        len(payload.courses),
        len(payload.requests),
    )
    return catalog_from_rows(payload, payload.blocks or settings.blocks)
