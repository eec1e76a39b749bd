from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date

from staffcover.services.records import BLOCK_RESOURCE_ID
from staffcover.services.snapshot import ScheduleSnapshot

FREE = "free"
NOT_PRESENT = "not-present"
OCCUPIED = "occupied"


@dataclass(frozen=True)
class BusySet:
    """Teachers occupied at one (date, slot), with the entries and substitutions that occupy them."""

    on_date: date
    slot: int
    entry_ids_by_teacher: dict[str, tuple[str, ...]] = field(default_factory=dict)
    vacancy_ids_by_teacher: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @property
    def teacher_ids(self) -> set[str]:
        return set(self.entry_ids_by_teacher) | set(self.vacancy_ids_by_teacher)

    def __contains__(self, teacher_id: object) -> bool:
        return teacher_id in self.entry_ids_by_teacher or teacher_id in self.vacancy_ids_by_teacher


@dataclass(frozen=True)
class AvailabilityVerdict:
    teacher_id: str
    on_date: date
    slot: int
    cause: str
    conflicting_entry_ids: tuple[str, ...] = ()
    conflicting_vacancy_ids: tuple[str, ...] = ()

    @property
    def available(self) -> bool:
        return self.cause == FREE


def build_busy_set(
    snapshot: ScheduleSnapshot,
    on_date: date,
    slot: int,
    *,
    ignore_vacancy_id: str | None = None,
) -> BusySet:
    entries_by_teacher: dict[str, list[str]] = defaultdict(list)
    vacancies_by_teacher: dict[str, list[str]] = defaultdict(list)

    with snapshot.locked():
        for entry in snapshot.entries_at(on_date, slot):
            if ignore_vacancy_id and entry.substitution_id == ignore_vacancy_id:
                continue
            if entry.teacher_id and entry.teacher_id != BLOCK_RESOURCE_ID:
                entries_by_teacher[entry.teacher_id].append(entry.id)
            if entry.block_id:
                block = snapshot.block(entry.block_id)
                if block is not None:
                    for teacher_id in block.teacher_ids:
                        entries_by_teacher[teacher_id].append(entry.id)

        for record in snapshot.vacancies_at(on_date, slot):
            if record.id == ignore_vacancy_id or record.is_archived or not record.is_resolved:
                continue
            vacancies_by_teacher[record.substitute_teacher_id].append(record.id)

    return BusySet(
        on_date=on_date,
        slot=slot,
        entry_ids_by_teacher={key: tuple(value) for key, value in entries_by_teacher.items()},
        vacancy_ids_by_teacher={key: tuple(value) for key, value in vacancies_by_teacher.items()},
    )


def is_present(snapshot: ScheduleSnapshot, teacher_id: str, on_date: date) -> bool:
    mark = snapshot.attendance_for(teacher_id, on_date)
    return mark is not None and mark.is_present


def resolve_availability(
    snapshot: ScheduleSnapshot,
    teacher_id: str,
    on_date: date,
    slot: int,
    *,
    busy: BusySet | None = None,
    ignore_vacancy_id: str | None = None,
) -> AvailabilityVerdict:
    if not is_present(snapshot, teacher_id, on_date):
        return AvailabilityVerdict(teacher_id=teacher_id, on_date=on_date, slot=slot, cause=NOT_PRESENT)

    if busy is None:
        busy = build_busy_set(snapshot, on_date, slot, ignore_vacancy_id=ignore_vacancy_id)
    if teacher_id in busy:
        return AvailabilityVerdict(
            teacher_id=teacher_id,
            on_date=on_date,
            slot=slot,
            cause=OCCUPIED,
            conflicting_entry_ids=busy.entry_ids_by_teacher.get(teacher_id, ()),
            conflicting_vacancy_ids=busy.vacancy_ids_by_teacher.get(teacher_id, ()),
        )
    return AvailabilityVerdict(teacher_id=teacher_id, on_date=on_date, slot=slot, cause=FREE)
