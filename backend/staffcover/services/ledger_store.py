"""Durable store for engine mutations.

The engine persists first and only then applies the same change to its
in-memory snapshot, so every method here either commits one transaction or
raises `PersistenceFailure` with nothing written.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import asdict
from typing import Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from staffcover.core.exceptions import PersistenceFailure
from staffcover.models.attendance import AttendanceRecord
from staffcover.models.combined_block import CombinedBlock
from staffcover.models.substitution_record import SubstitutionRecord
from staffcover.models.teacher import Teacher
from staffcover.models.teacher_assignment import TeacherAssignment
from staffcover.models.timetable_entry import TimetableEntry
from staffcover.services import audit
from staffcover.services.records import (
    AttendanceMark,
    DutyEntry,
    JointBlock,
    LoadProfile,
    TeacherProfile,
    Vacancy,
)

logger = logging.getLogger(__name__)


class LedgerStore(Protocol):
    def save_teachers(self, teachers: Sequence[TeacherProfile], *, actor_id: str | None = None) -> None: ...

    def save_entries(self, entries: Sequence[DutyEntry], *, actor_id: str | None = None) -> None: ...

    def save_blocks(self, blocks: Sequence[JointBlock], *, actor_id: str | None = None) -> None: ...

    def save_load_profiles(self, profiles: Sequence[LoadProfile], *, actor_id: str | None = None) -> None: ...

    def save_attendance(self, marks: Sequence[AttendanceMark], *, actor_id: str | None = None) -> None: ...

    def insert_vacancies(
        self, vacancies: Sequence[Vacancy], *, action: str = audit.SCAN, actor_id: str | None = None
    ) -> None: ...

    def save_resolution(
        self, vacancy: Vacancy, shadow_entry: DutyEntry, *, actor_id: str | None = None, source: str = "manual"
    ) -> None: ...

    def archive(self, vacancy_ids: Sequence[str], *, actor_id: str | None = None, details: dict | None = None) -> None: ...

    def purge(self, vacancy: Vacancy, shadow_id: str, *, actor_id: str | None = None) -> None: ...


def _upsert(db: Session, model, values: dict) -> None:
    row = db.get(model, values["id"])
    if row is None:
        db.add(model(**values))
        return
    for key, value in values.items():
        setattr(row, key, value)


class SqlLedgerStore:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        try:
            with self._session_factory() as db:
                with db.begin():
                    yield db
        except SQLAlchemyError as exc:
            logger.warning("Store rejected %s", operation, exc_info=True)
            raise PersistenceFailure(operation, str(exc.orig if getattr(exc, "orig", None) else exc)) from exc

    def save_teachers(self, teachers: Sequence[TeacherProfile], *, actor_id: str | None = None) -> None:
        with self._transaction("teacher import") as db:
            for teacher in teachers:
                _upsert(
                    db,
                    Teacher,
                    {
                        "id": teacher.id,
                        "name": teacher.name,
                        "role": teacher.role,
                        "secondary_roles": [role.value for role in teacher.secondary_roles],
                        "is_resigned": teacher.is_resigned,
                    },
                )
            audit.log_activity(
                db, actor_id=actor_id, action=audit.IMPORT, entity_type="teacher", details={"count": len(teachers)}
            )

    def save_entries(self, entries: Sequence[DutyEntry], *, actor_id: str | None = None) -> None:
        with self._transaction("timetable import") as db:
            for entry in entries:
                _upsert(db, TimetableEntry, asdict(entry))
            audit.log_activity(
                db,
                actor_id=actor_id,
                action=audit.IMPORT,
                entity_type="timetable_entry",
                details={"count": len(entries)},
            )

    def save_blocks(self, blocks: Sequence[JointBlock], *, actor_id: str | None = None) -> None:
        with self._transaction("combined block import") as db:
            for block in blocks:
                _upsert(
                    db,
                    CombinedBlock,
                    {
                        "id": block.id,
                        "name": block.name,
                        "section_names": list(block.section_names),
                        "allocations": [asdict(item) for item in block.allocations],
                    },
                )
            audit.log_activity(
                db, actor_id=actor_id, action=audit.IMPORT, entity_type="combined_block", details={"count": len(blocks)}
            )

    def save_load_profiles(self, profiles: Sequence[LoadProfile], *, actor_id: str | None = None) -> None:
        with self._transaction("load profile import") as db:
            for profile in profiles:
                _upsert(
                    db,
                    TeacherAssignment,
                    {
                        "id": profile.id,
                        "teacher_id": profile.teacher_id,
                        "grade": profile.grade,
                        "loads": [asdict(item) for item in profile.loads],
                        "target_sections": list(profile.target_sections),
                        "group_periods": profile.group_periods,
                    },
                )
            audit.log_activity(
                db,
                actor_id=actor_id,
                action=audit.IMPORT,
                entity_type="teacher_assignment",
                details={"count": len(profiles)},
            )

    def save_attendance(self, marks: Sequence[AttendanceMark], *, actor_id: str | None = None) -> None:
        with self._transaction("attendance feed") as db:
            for mark in marks:
                row = db.execute(
                    select(AttendanceRecord).where(
                        AttendanceRecord.user_id == mark.user_id,
                        AttendanceRecord.date == mark.date,
                    )
                ).scalar_one_or_none()
                if row is None:
                    db.add(
                        AttendanceRecord(
                            user_id=mark.user_id,
                            date=mark.date,
                            check_in=mark.check_in,
                            check_out=mark.check_out,
                        )
                    )
                else:
                    row.check_in = mark.check_in
                    row.check_out = mark.check_out

    def insert_vacancies(
        self, vacancies: Sequence[Vacancy], *, action: str = audit.SCAN, actor_id: str | None = None
    ) -> None:
        with self._transaction("vacancy creation") as db:
            for vacancy in vacancies:
                db.add(SubstitutionRecord(**asdict(vacancy)))
            audit.log_activity(
                db,
                actor_id=actor_id,
                action=action,
                entity_type="substitution",
                entity_id=vacancies[0].id if len(vacancies) == 1 else None,
                details={"created": [item.id for item in vacancies]},
            )

    def save_resolution(
        self, vacancy: Vacancy, shadow_entry: DutyEntry, *, actor_id: str | None = None, source: str = "manual"
    ) -> None:
        with self._transaction("substitute assignment") as db:
            _upsert(db, SubstitutionRecord, asdict(vacancy))
            _upsert(db, TimetableEntry, asdict(shadow_entry))
            audit.log_activity(
                db,
                actor_id=actor_id,
                action=audit.ASSIGN,
                entity_type="substitution",
                entity_id=vacancy.id,
                details={**audit.describe_vacancy(vacancy), "source": source, "shadow_entry_id": shadow_entry.id},
            )

    def archive(self, vacancy_ids: Sequence[str], *, actor_id: str | None = None, details: dict | None = None) -> None:
        with self._transaction("archive") as db:
            db.execute(
                update(SubstitutionRecord)
                .where(SubstitutionRecord.id.in_(list(vacancy_ids)))
                .values(is_archived=True)
            )
            audit.log_activity(
                db,
                actor_id=actor_id,
                action=audit.ARCHIVE,
                entity_type="substitution",
                details={**(details or {}), "archived": list(vacancy_ids)},
            )

    def purge(self, vacancy: Vacancy, shadow_id: str, *, actor_id: str | None = None) -> None:
        with self._transaction("purge") as db:
            db.execute(delete(SubstitutionRecord).where(SubstitutionRecord.id == vacancy.id))
            db.execute(delete(TimetableEntry).where(TimetableEntry.id == shadow_id))
            audit.log_activity(
                db,
                actor_id=actor_id,
                action=audit.PURGE,
                entity_type="substitution",
                entity_id=vacancy.id,
                details=audit.describe_vacancy(vacancy),
            )
