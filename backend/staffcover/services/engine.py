from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy.orm import sessionmaker

from staffcover.core.config import Settings
from staffcover.core.exceptions import (
    ConfigurationError,
    NonTeachingDay,
    ResourceNotFoundError,
    TimetableConflict,
)
from staffcover.models.timetable_entry import SectionType
from staffcover.services.assignment import AssignmentEngine
from staffcover.services.availability import AvailabilityVerdict, resolve_availability
from staffcover.services.ledger_store import LedgerStore, SqlLedgerStore
from staffcover.services.lifecycle import LifecycleManager
from staffcover.services.locks import EngineLocks
from staffcover.services.notifications import NotificationWriter, Notifier, NullNotifier
from staffcover.services.records import (
    SHADOW_ENTRY_PREFIX,
    WORK_WEEK_DAYS,
    AttendanceMark,
    DutyEntry,
    JointBlock,
    LoadProfile,
    TeacherProfile,
    Vacancy,
)
from staffcover.services.snapshot import ScheduleSnapshot, load_snapshot
from staffcover.services.suggestions import (
    HttpSuggestionSource,
    Proposal,
    ProposalOutcome,
    apply_proposals,
)
from staffcover.services.vacancy_scanner import VacancyScanner
from staffcover.services.workload import DEFAULT_WEEKLY_LOAD_CAP, WorkloadBreakdown, compute_workload

logger = logging.getLogger(__name__)


def _slot_key(entry: DutyEntry) -> tuple:
    return (entry.section, entry.class_name, entry.date or entry.day, entry.slot)


class SubstitutionEngine:
    """Process-wide entry point wiring the snapshot, the store and the engine components together.

    Registry imports follow the same rule as the engine itself: the store
    write happens first and the snapshot only changes once it succeeded.
    """

    def __init__(
        self,
        *,
        snapshot: ScheduleSnapshot,
        store: LedgerStore,
        notifier: Notifier | None = None,
        cap: int = DEFAULT_WEEKLY_LOAD_CAP,
        suggestion_source: HttpSuggestionSource | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.store = store
        self.locks = EngineLocks()
        self.cap = cap
        self.suggestion_source = suggestion_source
        self.scanner = VacancyScanner(snapshot=snapshot, store=store, locks=self.locks)
        self.assignments = AssignmentEngine(
            snapshot=snapshot,
            store=store,
            locks=self.locks,
            notifier=notifier or NullNotifier(),
            cap=cap,
        )
        self.lifecycle = LifecycleManager(snapshot=snapshot, store=store, locks=self.locks)

    # -- registry imports -------------------------------------------------

    def import_teachers(self, teachers: Sequence[TeacherProfile], *, actor_id: str | None = None) -> None:
        self.store.save_teachers(teachers, actor_id=actor_id)
        self.snapshot.put_teachers(teachers)
        logger.info("Imported %d teachers", len(teachers))

    def _check_importable(self, entries: Sequence[DutyEntry]) -> None:
        for entry in entries:
            # Shadow entries belong to the commit engine and only change together with their record.
            if entry.is_substitution or entry.substitution_id or entry.id.startswith(SHADOW_ENTRY_PREFIX):
                raise TimetableConflict(
                    f"Entry {entry.id} is reserved for substitution cover and cannot be imported",
                    details={"entry_id": entry.id, "substitution_id": entry.substitution_id},
                )
            if entry.day not in WORK_WEEK_DAYS:
                raise NonTeachingDay(entry.day, entry.date)

    def _check_regular_entries(self, entries: Sequence[DutyEntry]) -> None:
        incoming_ids = {entry.id for entry in entries}
        taken: dict[tuple, str] = {}
        for existing in self.snapshot.entries():
            if not existing.is_substitution and existing.id not in incoming_ids:
                taken[_slot_key(existing)] = existing.id
        for entry in entries:
            key = _slot_key(entry)
            holder = taken.get(key)
            if holder is not None and holder != entry.id:
                raise TimetableConflict(
                    f"{entry.class_name} already has a regular entry in period {entry.slot}",
                    details={"entry_id": entry.id, "conflicting_entry_id": holder},
                )
            taken[key] = entry.id

    def import_entries(self, entries: Sequence[DutyEntry], *, actor_id: str | None = None) -> None:
        with self.snapshot.locked():
            self._check_importable(entries)
            self._check_regular_entries(entries)
            self.store.save_entries(entries, actor_id=actor_id)
            self.snapshot.put_entries(entries)
        logger.info("Imported %d timetable entries", len(entries))

    def import_blocks(self, blocks: Sequence[JointBlock], *, actor_id: str | None = None) -> None:
        self.store.save_blocks(blocks, actor_id=actor_id)
        self.snapshot.put_blocks(blocks)
        logger.info("Imported %d combined blocks", len(blocks))

    def import_load_profiles(self, profiles: Sequence[LoadProfile], *, actor_id: str | None = None) -> None:
        self.store.save_load_profiles(profiles, actor_id=actor_id)
        self.snapshot.put_load_profiles(profiles)
        logger.info("Imported %d load profiles", len(profiles))

    def record_attendance(self, marks: Sequence[AttendanceMark], *, actor_id: str | None = None) -> None:
        self.store.save_attendance(marks, actor_id=actor_id)
        self.snapshot.put_attendance(marks)
        logger.info("Recorded %d attendance marks", len(marks))

    # -- reads ------------------------------------------------------------

    def require_teacher(self, teacher_id: str) -> TeacherProfile:
        teacher = self.snapshot.teacher(teacher_id)
        if teacher is None:
            raise ResourceNotFoundError("Teacher", teacher_id)
        return teacher

    def get_vacancy(self, vacancy_id: str) -> Vacancy:
        vacancy = self.snapshot.vacancy(vacancy_id)
        if vacancy is None:
            raise ResourceNotFoundError("Substitution", vacancy_id)
        return vacancy

    def workload(self, teacher_id: str, reference: date) -> WorkloadBreakdown:
        self.require_teacher(teacher_id)
        return compute_workload(self.snapshot, teacher_id, reference, cap=self.cap)

    def availability(self, teacher_id: str, on_date: date, slot: int) -> AvailabilityVerdict:
        self.require_teacher(teacher_id)
        return resolve_availability(self.snapshot, teacher_id, on_date, slot)

    def list_vacancies(
        self,
        on_date: date | None = None,
        section: SectionType | None = None,
        *,
        include_archived: bool = False,
    ) -> list[Vacancy]:
        return self.snapshot.vacancies(on_date=on_date, section=section, include_archived=include_archived)

    def duties_for_substitute(self, teacher_id: str, on_date: date | None = None) -> list[Vacancy]:
        """Proxy duties currently assigned to a teacher, optionally for one date."""
        return [
            item
            for item in self.snapshot.substitutions_by(teacher_id)
            if not item.is_archived and (on_date is None or item.date == on_date)
        ]

    # -- advisory ---------------------------------------------------------

    def fetch_suggestions(self, on_date: date, section: SectionType | None = None) -> list[Proposal]:
        if self.suggestion_source is None:
            raise ConfigurationError("No suggestion service is configured (SUGGESTION_URL)")
        pending = [item for item in self.list_vacancies(on_date, section) if not item.is_resolved]
        if not pending:
            return []
        candidates = {item.id: self.assignments.rank(item.id) for item in pending}
        return self.suggestion_source.fetch(pending, candidates)

    def apply_suggestions(
        self,
        proposals: Sequence[Proposal],
        *,
        actor_id: str | None = None,
    ) -> list[ProposalOutcome]:
        return apply_proposals(self.assignments, proposals, actor_id=actor_id)


def build_engine(session_factory: sessionmaker, settings: Settings) -> SubstitutionEngine:
    with session_factory() as db:
        snapshot = load_snapshot(db)
    source = None
    if settings.suggestion_url:
        source = HttpSuggestionSource(
            url=settings.suggestion_url,
            timeout_s=settings.suggestion_timeout_seconds,
            retries=settings.suggestion_retries,
        )
    return SubstitutionEngine(
        snapshot=snapshot,
        store=SqlLedgerStore(session_factory),
        notifier=NotificationWriter(session_factory),
        cap=settings.weekly_load_cap,
        suggestion_source=source,
    )
