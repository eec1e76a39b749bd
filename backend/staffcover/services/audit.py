from __future__ import annotations

from sqlalchemy.orm import Session

from staffcover.models.activity_log import ActivityLog
from staffcover.services.records import Vacancy

SCAN = "substitution.scan"
MANUAL_LOG = "substitution.manual_log"
ASSIGN = "substitution.assign"
ARCHIVE = "substitution.archive"
PURGE = "substitution.purge"
IMPORT = "registry.import"


def describe_vacancy(vacancy: Vacancy) -> dict:
    return {
        "date": vacancy.date.isoformat(),
        "slot": vacancy.slot,
        "class_name": vacancy.class_name,
        "section": vacancy.section.value,
        "absent_teacher_id": vacancy.absent_teacher_id,
        "substitute_teacher_id": vacancy.substitute_teacher_id or None,
    }


def log_activity(
    db: Session,
    *,
    actor_id: str | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> None:
    db.add(
        ActivityLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
    )
