"""Candidate ranking and the assignment commit path.

Every write goes through `AssignmentEngine.commit`: it locks the vacancy, its
(date, slot) and the candidate, re-reads the vacancy, validates the candidate
against the latest state and only then persists. The snapshot is updated after
the store accepted the write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date

from staffcover.core.exceptions import (
    RejectionReason,
    ResourceNotFoundError,
    ValidationRejected,
    VacancyArchived,
)
from staffcover.services.availability import (
    AvailabilityVerdict,
    build_busy_set,
    resolve_availability,
)
from staffcover.services.eligibility import is_deployable, is_eligible_for_section
from staffcover.services.ledger_store import LedgerStore
from staffcover.services.locks import EngineLocks
from staffcover.services.notifications import Notifier
from staffcover.services.records import (
    DutyEntry,
    Resolution,
    TeacherProfile,
    Vacancy,
    is_teaching_day,
    shadow_entry_id,
    weekday_name,
)
from staffcover.services.snapshot import ScheduleSnapshot
from staffcover.services.workload import DEFAULT_WEEKLY_LOAD_CAP, WorkloadBreakdown, compute_workload

logger = logging.getLogger(__name__)

NO_ELIGIBLE_CANDIDATE = "no-eligible-candidate"
VACANCY_CLOSED = "vacancy-closed"


@dataclass(frozen=True)
class RankedCandidate:
    teacher: TeacherProfile
    availability: AvailabilityVerdict
    workload: WorkloadBreakdown
    holds_vacancy: bool = False

    @property
    def within_cap(self) -> bool:
        return self.workload.allows(0 if self.holds_vacancy else 1)

    @property
    def selectable(self) -> bool:
        return self.availability.available and self.within_cap


@dataclass(frozen=True)
class UnresolvedVacancy:
    vacancy: Vacancy
    reason: str
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class BatchOutcome:
    assigned: list[Vacancy] = field(default_factory=list)
    unresolved: list[UnresolvedVacancy] = field(default_factory=list)


def build_resolution(vacancy: Vacancy, teacher: TeacherProfile) -> Resolution:
    resolved = replace(vacancy, substitute_teacher_id=teacher.id, substitute_teacher_name=teacher.name)
    shadow = DutyEntry(
        id=shadow_entry_id(vacancy.id),
        section=vacancy.section,
        class_name=vacancy.class_name,
        day=weekday_name(vacancy.date),
        slot=vacancy.slot,
        subject=vacancy.subject,
        teacher_id=teacher.id,
        teacher_name=teacher.name,
        date=vacancy.date,
        is_substitution=True,
        substitution_id=vacancy.id,
    )
    return Resolution(vacancy=resolved, shadow_entry=shadow, previous=vacancy)


def validate_candidate(
    snapshot: ScheduleSnapshot,
    vacancy: Vacancy,
    teacher: TeacherProfile,
    *,
    cap: int = DEFAULT_WEEKLY_LOAD_CAP,
) -> WorkloadBreakdown:
    """Run the commit checks in order and return the candidate's current workload.

    Raises `ValidationRejected` on the first failing check.
    """
    ids = {"vacancy_id": vacancy.id, "teacher_id": teacher.id}

    if not is_teaching_day(vacancy.date):
        raise ValidationRejected(
            RejectionReason.non_teaching_day,
            f"{vacancy.date.isoformat()} falls outside the teaching week",
            {**ids, "date": vacancy.date.isoformat()},
        )

    if teacher.id == vacancy.absent_teacher_id:
        raise ValidationRejected(
            RejectionReason.absent_is_candidate,
            "The absent teacher cannot cover their own duty",
            ids,
        )

    if not is_deployable(teacher):
        raise ValidationRejected(
            RejectionReason.ineligible_wing,
            f"{teacher.name} cannot be deployed for cover",
            {**ids, "cause": "resigned" if teacher.is_resigned else "not-deployable"},
        )
    if not is_eligible_for_section(teacher, vacancy.section):
        raise ValidationRejected(
            RejectionReason.ineligible_wing,
            f"{teacher.name} is not eligible for the {vacancy.section.value} wing",
            {**ids, "cause": "wing", "section": vacancy.section.value},
        )

    verdict = resolve_availability(snapshot, teacher.id, vacancy.date, vacancy.slot, ignore_vacancy_id=vacancy.id)
    if not verdict.available:
        raise ValidationRejected(
            RejectionReason.slot_conflict,
            f"{teacher.name} is not free for period {vacancy.slot} on {vacancy.date.isoformat()}",
            {
                **ids,
                "cause": verdict.cause,
                "conflicting_entry_ids": list(verdict.conflicting_entry_ids),
                "conflicting_vacancy_ids": list(verdict.conflicting_vacancy_ids),
            },
        )

    workload = compute_workload(snapshot, teacher.id, vacancy.date, cap=cap)
    extra = 0 if vacancy.substitute_teacher_id == teacher.id else 1
    if not workload.allows(extra):
        raise ValidationRejected(
            RejectionReason.workload_cap_exceeded,
            f"{teacher.name} would exceed the weekly load cap of {cap}",
            {**ids, "total": workload.total, "cap": cap, "projected": workload.total + extra},
        )
    return workload


class AssignmentEngine:
    def __init__(
        self,
        *,
        snapshot: ScheduleSnapshot,
        store: LedgerStore,
        locks: EngineLocks,
        notifier: Notifier,
        cap: int = DEFAULT_WEEKLY_LOAD_CAP,
    ) -> None:
        self._snapshot = snapshot
        self._store = store
        self._locks = locks
        self._notifier = notifier
        self.cap = cap

    def _require_vacancy(self, vacancy_id: str) -> Vacancy:
        vacancy = self._snapshot.vacancy(vacancy_id)
        if vacancy is None:
            raise ResourceNotFoundError("Substitution", vacancy_id)
        return vacancy

    def rank(self, vacancy_id: str) -> list[RankedCandidate]:
        """Eligible teachers for a vacancy: available ones by ascending load, then the unavailable ones."""
        vacancy = self._require_vacancy(vacancy_id)
        busy = build_busy_set(self._snapshot, vacancy.date, vacancy.slot, ignore_vacancy_id=vacancy.id)

        ranked: list[RankedCandidate] = []
        for teacher in self._snapshot.teachers():
            if teacher.id == vacancy.absent_teacher_id or not is_deployable(teacher):
                continue
            if not is_eligible_for_section(teacher, vacancy.section):
                continue
            ranked.append(
                RankedCandidate(
                    teacher=teacher,
                    availability=resolve_availability(
                        self._snapshot, teacher.id, vacancy.date, vacancy.slot, busy=busy
                    ),
                    workload=compute_workload(self._snapshot, teacher.id, vacancy.date, cap=self.cap),
                    holds_vacancy=vacancy.substitute_teacher_id == teacher.id,
                )
            )

        ranked.sort(
            key=lambda item: (
                not item.availability.available,
                item.workload.total,
                item.teacher.name.lower(),
                item.teacher.id,
            )
        )
        return ranked

    def commit(
        self,
        vacancy_id: str,
        teacher_id: str,
        *,
        actor_id: str | None = None,
        source: str = "manual",
    ) -> Vacancy:
        vacancy = self._require_vacancy(vacancy_id)

        with self._locks.for_commit(vacancy.id, vacancy.date, vacancy.slot, teacher_id):
            vacancy = self._require_vacancy(vacancy_id)
            if vacancy.is_archived:
                raise VacancyArchived(vacancy.id)
            teacher = self._snapshot.teacher(teacher_id)
            if teacher is None:
                raise ResourceNotFoundError("Teacher", teacher_id)

            try:
                validate_candidate(self._snapshot, vacancy, teacher, cap=self.cap)
            except ValidationRejected as exc:
                logger.info("Rejected %s for substitution %s: %s", teacher_id, vacancy_id, exc.reason.value)
                raise

            resolution = build_resolution(vacancy, teacher)
            self._store.save_resolution(
                resolution.vacancy, resolution.shadow_entry, actor_id=actor_id, source=source
            )
            self._snapshot.apply_resolution(resolution.vacancy, resolution.shadow_entry)

        logger.info(
            "Assigned %s to substitution %s (%s, period %d) via %s",
            teacher.id,
            vacancy.id,
            vacancy.date.isoformat(),
            vacancy.slot,
            source,
        )
        self._notify(resolution)
        return resolution.vacancy

    def _notify(self, resolution: Resolution) -> None:
        try:
            self._notifier.substitution_assigned(resolution.vacancy, resolution.previous)
        except Exception:
            logger.warning("Notification for substitution %s failed", resolution.vacancy.id, exc_info=True)

    def auto_resolve(
        self,
        on_date: date,
        section: str | None = None,
        *,
        actor_id: str | None = None,
    ) -> BatchOutcome:
        outcome = BatchOutcome()
        pending = [
            item
            for item in self._snapshot.vacancies(on_date=on_date, section=section, include_archived=False)
            if not item.is_resolved
        ]

        for vacancy in pending:
            rejections: list[dict] = []
            committed: Vacancy | None = None
            closed = False
            for candidate in self.rank(vacancy.id):
                if not candidate.selectable:
                    continue
                try:
                    committed = self.commit(vacancy.id, candidate.teacher.id, actor_id=actor_id, source="auto")
                    break
                except ValidationRejected as exc:
                    rejections.append({"teacher_id": candidate.teacher.id, "reason": exc.reason.value})
                except (VacancyArchived, ResourceNotFoundError):
                    closed = True
                    break
            if committed is not None:
                outcome.assigned.append(committed)
            elif closed:
                outcome.unresolved.append(UnresolvedVacancy(vacancy=vacancy, reason=VACANCY_CLOSED))
            else:
                outcome.unresolved.append(
                    UnresolvedVacancy(vacancy=vacancy, reason=NO_ELIGIBLE_CANDIDATE, details={"rejections": rejections})
                )

        logger.info(
            "Auto-resolve for %s: %d assigned, %d left pending",
            on_date.isoformat(),
            len(outcome.assigned),
            len(outcome.unresolved),
        )
        return outcome
