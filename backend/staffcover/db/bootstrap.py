from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import staffcover.models  # noqa: F401
from staffcover.db.base import Base
from staffcover.db.session import engine as default_engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "teachers": {"id", "name", "role", "secondary_roles", "is_resigned"},
    "timetable_entries": {"id", "section", "class_name", "day", "date", "slot", "teacher_id", "block_id", "is_substitution", "substitution_id"},
    "substitution_records": {
        "id",
        "date",
        "slot",
        "class_name",
        "absent_teacher_id",
        "substitute_teacher_id",
        "is_archived",
    },
    "attendance_records": {"id", "user_id", "date", "check_in"},
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


def ensure_schema(engine: Engine | None = None) -> None:
    bind = engine or default_engine
    try:
        Base.metadata.create_all(bind=bind)
        _assert_required_columns(bind)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
