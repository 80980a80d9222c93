from collections.abc import Generator

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.db.session import SessionLocal
from app.schemas.scheduling import SchedulingOptions, default_scheduling_options


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_app_settings() -> Settings:
    return get_settings()


def resolve_options(override: SchedulingOptions | None, settings: Settings) -> SchedulingOptions:
    if override is not None:
        return override
    return default_scheduling_options(settings)
