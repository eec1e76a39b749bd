from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from staffcover.models.attendance import AttendanceRecord
from staffcover.models.combined_block import CombinedBlock
from staffcover.models.substitution_record import SubstitutionRecord
from staffcover.models.teacher import Teacher
from staffcover.models.teacher_assignment import TeacherAssignment
from staffcover.models.timetable_entry import TimetableEntry
from staffcover.services.records import (
    AttendanceMark,
    DutyEntry,
    JointBlock,
    LoadProfile,
    TeacherProfile,
    Vacancy,
    attendance_from_row,
    block_from_row,
    entry_from_row,
    load_profile_from_row,
    teacher_from_row,
    vacancy_from_row,
    weekday_name,
)

logger = logging.getLogger(__name__)

DutyKey = tuple[date, str, int, str]


class ScheduleSnapshot:
    """In-memory repository of the shared scheduling collections.

    Every collection is indexed for the lookups the engine makes: recurring
    entries by (weekday, slot), dated entries by (date, slot), vacancies by
    (date, slot), by duty tuple and by substitute. All access goes through one
    re-entrant lock; composite mutations are applied under a single acquisition.
    """

    def __init__(
        self,
        *,
        teachers: Iterable[TeacherProfile] = (),
        entries: Iterable[DutyEntry] = (),
        blocks: Iterable[JointBlock] = (),
        load_profiles: Iterable[LoadProfile] = (),
        attendance: Iterable[AttendanceMark] = (),
        vacancies: Iterable[Vacancy] = (),
    ) -> None:
        self._lock = threading.RLock()
        self._teachers: dict[str, TeacherProfile] = {}
        self._entries: dict[str, DutyEntry] = {}
        self._recurring_index: dict[tuple[str, int], set[str]] = defaultdict(set)
        self._dated_index: dict[tuple[date, int], set[str]] = defaultdict(set)
        self._blocks: dict[str, JointBlock] = {}
        self._profiles: dict[str, LoadProfile] = {}
        self._profiles_by_teacher: dict[str, set[str]] = defaultdict(set)
        self._attendance: dict[tuple[str, date], AttendanceMark] = {}
        self._vacancies: dict[str, Vacancy] = {}
        self._vacancies_by_slot: dict[tuple[date, int], set[str]] = defaultdict(set)
        self._vacancies_by_substitute: dict[str, set[str]] = defaultdict(set)
        self._vacancy_by_duty: dict[DutyKey, str] = {}

        self.put_teachers(teachers)
        self.put_entries(entries)
        self.put_blocks(blocks)
        self.put_load_profiles(load_profiles)
        self.put_attendance(attendance)
        for vacancy in vacancies:
            self._store_vacancy(vacancy)

    @contextmanager
    def locked(self) -> Iterator[ScheduleSnapshot]:
        """Hold the snapshot lock across several reads that must agree with each other."""
        with self._lock:
            yield self

    # -- teachers ---------------------------------------------------------

    def put_teachers(self, teachers: Iterable[TeacherProfile]) -> None:
        with self._lock:
            for teacher in teachers:
                self._teachers[teacher.id] = teacher

    def teacher(self, teacher_id: str) -> TeacherProfile | None:
        with self._lock:
            return self._teachers.get(teacher_id)

    def teachers(self) -> list[TeacherProfile]:
        with self._lock:
            return sorted(self._teachers.values(), key=lambda item: (item.name.lower(), item.id))

    # -- timetable --------------------------------------------------------

    def _index_entry(self, entry: DutyEntry) -> None:
        if entry.date is None:
            self._recurring_index[(entry.day, entry.slot)].add(entry.id)
        else:
            self._dated_index[(entry.date, entry.slot)].add(entry.id)

    def _unindex_entry(self, entry: DutyEntry) -> None:
        if entry.date is None:
            self._recurring_index[(entry.day, entry.slot)].discard(entry.id)
        else:
            self._dated_index[(entry.date, entry.slot)].discard(entry.id)

    def _store_entry(self, entry: DutyEntry) -> None:
        existing = self._entries.get(entry.id)
        if existing is not None:
            self._unindex_entry(existing)
        self._entries[entry.id] = entry
        self._index_entry(entry)

    def _drop_entry(self, entry_id: str) -> DutyEntry | None:
        existing = self._entries.pop(entry_id, None)
        if existing is not None:
            self._unindex_entry(existing)
        return existing

    def put_entries(self, entries: Iterable[DutyEntry]) -> None:
        with self._lock:
            for entry in entries:
                self._store_entry(entry)

    def remove_entries(self, entry_ids: Iterable[str]) -> None:
        with self._lock:
            for entry_id in entry_ids:
                self._drop_entry(entry_id)

    def entry(self, entry_id: str) -> DutyEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    def entries_at(self, on_date: date, slot: int) -> list[DutyEntry]:
        """Entries occupying `slot` on `on_date`: the recurring ones for its weekday plus overrides for that date."""
        day = weekday_name(on_date)
        with self._lock:
            ids = self._recurring_index.get((day, slot), set()) | self._dated_index.get((on_date, slot), set())
            return sorted((self._entries[item] for item in ids), key=lambda item: item.id)

    def recurring_entries_on(self, day: str) -> list[DutyEntry]:
        with self._lock:
            found = [
                self._entries[entry_id]
                for (indexed_day, _), entry_ids in self._recurring_index.items()
                if indexed_day == day
                for entry_id in entry_ids
            ]
        return sorted(found, key=lambda item: (item.slot, item.class_name, item.id))

    def entries(self, *, day: str | None = None, on_date: date | None = None) -> list[DutyEntry]:
        with self._lock:
            found = list(self._entries.values())
        if on_date is not None:
            day = weekday_name(on_date)
            found = [item for item in found if (item.date is None and item.day == day) or item.date == on_date]
        elif day is not None:
            found = [item for item in found if item.day == day]
        return sorted(found, key=lambda item: (item.section.value, item.class_name, item.slot, item.id))

    # -- combined blocks, load profiles, attendance ----------------------

    def put_blocks(self, blocks: Iterable[JointBlock]) -> None:
        with self._lock:
            for block in blocks:
                self._blocks[block.id] = block

    def block(self, block_id: str) -> JointBlock | None:
        with self._lock:
            return self._blocks.get(block_id)

    def put_load_profiles(self, profiles: Iterable[LoadProfile]) -> None:
        with self._lock:
            for profile in profiles:
                previous = self._profiles.get(profile.id)
                if previous is not None:
                    self._profiles_by_teacher[previous.teacher_id].discard(previous.id)
                self._profiles[profile.id] = profile
                self._profiles_by_teacher[profile.teacher_id].add(profile.id)

    def load_profiles_for(self, teacher_id: str) -> list[LoadProfile]:
        with self._lock:
            ids = sorted(self._profiles_by_teacher.get(teacher_id, set()))
            return [self._profiles[item] for item in ids]

    def put_attendance(self, marks: Iterable[AttendanceMark]) -> None:
        with self._lock:
            for mark in marks:
                self._attendance[(mark.user_id, mark.date)] = mark

    def attendance_for(self, user_id: str, on_date: date) -> AttendanceMark | None:
        with self._lock:
            return self._attendance.get((user_id, on_date))

    # -- vacancies --------------------------------------------------------

    def _store_vacancy(self, vacancy: Vacancy) -> None:
        existing = self._vacancies.get(vacancy.id)
        if existing is not None:
            self._unindex_vacancy(existing)
        self._vacancies[vacancy.id] = vacancy
        self._vacancies_by_slot[(vacancy.date, vacancy.slot)].add(vacancy.id)
        self._vacancy_by_duty[vacancy.duty_key] = vacancy.id
        if vacancy.substitute_teacher_id:
            self._vacancies_by_substitute[vacancy.substitute_teacher_id].add(vacancy.id)

    def _unindex_vacancy(self, vacancy: Vacancy) -> None:
        self._vacancies_by_slot[(vacancy.date, vacancy.slot)].discard(vacancy.id)
        if self._vacancy_by_duty.get(vacancy.duty_key) == vacancy.id:
            del self._vacancy_by_duty[vacancy.duty_key]
        if vacancy.substitute_teacher_id:
            self._vacancies_by_substitute[vacancy.substitute_teacher_id].discard(vacancy.id)

    def vacancy(self, vacancy_id: str) -> Vacancy | None:
        with self._lock:
            return self._vacancies.get(vacancy_id)

    def vacancy_for_duty(self, key: DutyKey) -> Vacancy | None:
        with self._lock:
            vacancy_id = self._vacancy_by_duty.get(key)
            return self._vacancies.get(vacancy_id) if vacancy_id else None

    def vacancies_at(self, on_date: date, slot: int) -> list[Vacancy]:
        with self._lock:
            ids = self._vacancies_by_slot.get((on_date, slot), set())
            return sorted((self._vacancies[item] for item in ids), key=lambda item: item.id)

    def vacancies(
        self,
        *,
        on_date: date | None = None,
        section: str | None = None,
        include_archived: bool = True,
    ) -> list[Vacancy]:
        with self._lock:
            found = list(self._vacancies.values())
        if on_date is not None:
            found = [item for item in found if item.date == on_date]
        if section is not None:
            found = [item for item in found if item.section == section]
        if not include_archived:
            found = [item for item in found if not item.is_archived]
        return sorted(found, key=lambda item: (item.date, item.slot, item.class_name, item.id))

    def substitutions_by(self, teacher_id: str) -> list[Vacancy]:
        """Every record, archived or not, naming `teacher_id` as substitute."""
        with self._lock:
            ids = self._vacancies_by_substitute.get(teacher_id, set())
            return sorted((self._vacancies[item] for item in ids), key=lambda item: (item.date, item.slot, item.id))

    def add_vacancies(self, vacancies: Iterable[Vacancy]) -> list[Vacancy]:
        """Insert records whose duty tuple is not yet known; returns the ones actually added."""
        added: list[Vacancy] = []
        with self._lock:
            for vacancy in vacancies:
                if vacancy.duty_key in self._vacancy_by_duty or vacancy.id in self._vacancies:
                    continue
                self._store_vacancy(vacancy)
                added.append(vacancy)
        return added

    def apply_resolution(self, vacancy: Vacancy, shadow_entry: DutyEntry) -> None:
        with self._lock:
            self._store_vacancy(vacancy)
            self._store_entry(shadow_entry)

    def mark_archived(self, vacancy_ids: Iterable[str]) -> list[Vacancy]:
        changed: list[Vacancy] = []
        with self._lock:
            for vacancy_id in vacancy_ids:
                current = self._vacancies.get(vacancy_id)
                if current is None or current.is_archived:
                    continue
                archived = replace(current, is_archived=True)
                self._store_vacancy(archived)
                changed.append(archived)
        return changed

    def remove_vacancy(self, vacancy_id: str, shadow_id: str) -> Vacancy | None:
        with self._lock:
            current = self._vacancies.pop(vacancy_id, None)
            if current is not None:
                self._unindex_vacancy(current)
            self._drop_entry(shadow_id)
            return current


def load_snapshot(db: Session) -> ScheduleSnapshot:
    snapshot = ScheduleSnapshot(
        teachers=[teacher_from_row(row) for row in db.execute(select(Teacher)).scalars()],
        entries=[entry_from_row(row) for row in db.execute(select(TimetableEntry)).scalars()],
        blocks=[block_from_row(row) for row in db.execute(select(CombinedBlock)).scalars()],
        load_profiles=[load_profile_from_row(row) for row in db.execute(select(TeacherAssignment)).scalars()],
        attendance=[attendance_from_row(row) for row in db.execute(select(AttendanceRecord)).scalars()],
        vacancies=[vacancy_from_row(row) for row in db.execute(select(SubstitutionRecord)).scalars()],
    )
    logger.info(
        "Loaded schedule snapshot: %d teachers, %d timetable entries, %d substitution records",
        len(snapshot.teachers()),
        len(snapshot.entries()),
        len(snapshot.vacancies()),
    )
    return snapshot
