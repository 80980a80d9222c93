from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "schedule_runs": {"id", "label", "random_seed", "payload", "summary", "created_at"},
}


def missing_schema(engine: Engine) -> tuple[list[str], dict[str, list[str]]]:
    with engine.connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables: list[str] = []
        missing_columns: dict[str, list[str]] = {}
        for table_name, columns in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                missing_tables.append(table_name)
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(columns - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema(engine: Engine | None = None) -> None:
    """Create missing tables so a fresh SQLite file works without running migrations."""
    engine = engine or default_engine
    missing_tables, missing_columns = missing_schema(engine)
    if missing_tables:
        logger.info("SCHEMA BOOTSTRAP | creating_tables=%s", ",".join(missing_tables))
        Base.metadata.create_all(bind=engine)
    if missing_columns:
        logger.warning("SCHEMA BOOTSTRAP | missing_columns=%s | hint=run alembic upgrade head", missing_columns)
