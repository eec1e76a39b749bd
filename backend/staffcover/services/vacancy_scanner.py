from __future__ import annotations

import logging
import uuid
from datetime import date

from staffcover.core.exceptions import NonTeachingDay, ResourceNotFoundError
from staffcover.models.timetable_entry import SectionType
from staffcover.services import audit
from staffcover.services.availability import is_present
from staffcover.services.eligibility import is_deployable
from staffcover.services.ledger_store import LedgerStore
from staffcover.services.locks import EngineLocks
from staffcover.services.records import DutyEntry, TeacherProfile, Vacancy, is_teaching_day, weekday_name
from staffcover.services.snapshot import DutyKey, ScheduleSnapshot

logger = logging.getLogger(__name__)

AUTO_PREFIX = "auto-"
MANUAL_PREFIX = "manual-"


def absentees_on(snapshot: ScheduleSnapshot, on_date: date) -> list[TeacherProfile]:
    return [
        teacher
        for teacher in snapshot.teachers()
        if is_deployable(teacher) and not is_present(snapshot, teacher.id, on_date)
    ]


def _teaches(snapshot: ScheduleSnapshot, entry: DutyEntry, teacher_id: str) -> bool:
    if entry.teacher_id == teacher_id:
        return True
    if entry.block_id:
        block = snapshot.block(entry.block_id)
        return block is not None and teacher_id in block.teacher_ids
    return False


def find_vacant_duties(snapshot: ScheduleSnapshot, on_date: date) -> list[Vacancy]:
    """Pending records for every uncovered recurring duty of an absent teacher on `on_date`.

    Duties that already have a record for the same (date, teacher, slot, class),
    archived or not, are skipped. Nothing is written.
    """
    day = weekday_name(on_date)
    entries = snapshot.recurring_entries_on(day)
    seen: set[DutyKey] = set()
    found: list[Vacancy] = []

    for teacher in absentees_on(snapshot, on_date):
        for entry in entries:
            if not _teaches(snapshot, entry, teacher.id):
                continue
            key = (on_date, teacher.id, entry.slot, entry.class_name)
            if key in seen or snapshot.vacancy_for_duty(key) is not None:
                continue
            seen.add(key)
            found.append(
                Vacancy(
                    id=f"{AUTO_PREFIX}{uuid.uuid4()}",
                    date=on_date,
                    slot=entry.slot,
                    class_name=entry.class_name,
                    subject=entry.subject,
                    section=entry.section,
                    absent_teacher_id=teacher.id,
                    absent_teacher_name=teacher.name,
                )
            )
    return found


class VacancyScanner:
    def __init__(self, *, snapshot: ScheduleSnapshot, store: LedgerStore, locks: EngineLocks) -> None:
        self._snapshot = snapshot
        self._store = store
        self._locks = locks

    def scan(self, on_date: date, *, actor_id: str | None = None) -> list[Vacancy]:
        with self._locks.for_scan(on_date):
            pending = find_vacant_duties(self._snapshot, on_date)
            if not pending:
                logger.info("Vacancy scan for %s found nothing new", on_date.isoformat())
                return []
            self._store.insert_vacancies(pending, action=audit.SCAN, actor_id=actor_id)
            created = self._snapshot.add_vacancies(pending)
        logger.info("Vacancy scan for %s created %d records", on_date.isoformat(), len(created))
        return created

    def log_manual(
        self,
        *,
        on_date: date,
        slot: int,
        class_name: str,
        subject: str,
        section: SectionType,
        absent_teacher_id: str,
        actor_id: str | None = None,
    ) -> tuple[Vacancy, bool]:
        """Record one vacancy by hand. Returns the record and whether it was newly created."""
        if not is_teaching_day(on_date):
            raise NonTeachingDay(weekday_name(on_date), on_date)
        teacher = self._snapshot.teacher(absent_teacher_id)
        if teacher is None:
            raise ResourceNotFoundError("Teacher", absent_teacher_id)

        with self._locks.for_scan(on_date):
            existing = self._snapshot.vacancy_for_duty((on_date, absent_teacher_id, slot, class_name))
            if existing is not None:
                return existing, False
            vacancy = Vacancy(
                id=f"{MANUAL_PREFIX}{uuid.uuid4()}",
                date=on_date,
                slot=slot,
                class_name=class_name,
                subject=subject,
                section=SectionType(section),
                absent_teacher_id=teacher.id,
                absent_teacher_name=teacher.name,
            )
            self._store.insert_vacancies([vacancy], action=audit.MANUAL_LOG, actor_id=actor_id)
            self._snapshot.add_vacancies([vacancy])
        logger.info("Logged manual vacancy %s for %s", vacancy.id, teacher.id)
        return vacancy, True
