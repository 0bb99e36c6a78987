from __future__ import annotations

import logging

from sqlalchemy import Engine, inspect

import timegrid.models  # noqa: F401
from timegrid.db.base import Base
from timegrid.db.session import get_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "name", "email", "department"},
    "student_groups": {"id", "name"},
    "courses": {"id", "name", "code", "duration"},
    "classes": {
        "id",
        "course_id",
        "teacher_id",
        "student_group_id",
        "day",
        "start_time",
        "end_time",
        "has_conflict",
        "meeting_link",
    },
    "teacher_availabilities": {"id", "teacher", "day", "start_time", "end_time"},
}


def _assert_required_columns(engine: Engine) -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_database_schema(engine: Engine | None = None) -> None:
    engine = engine or get_engine()
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns(engine)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Database schema bootstrap failed")
        raise RuntimeError("Database schema bootstrap failed") from exc
    logger.info("DATABASE READY | tables=%s", ",".join(sorted(REQUIRED_COLUMNS)))
