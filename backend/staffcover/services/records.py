"""Immutable domain records the engine reasons over.

The snapshot only ever swaps whole records, so a reader holding a record never
observes a half-applied change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from staffcover.models.attendance import MEDICAL_LEAVE, AttendanceRecord
from staffcover.models.combined_block import CombinedBlock
from staffcover.models.substitution_record import PENDING_SUBSTITUTE_NAME, SubstitutionRecord
from staffcover.models.teacher import Teacher, UserRole
from staffcover.models.teacher_assignment import TeacherAssignment
from staffcover.models.timetable_entry import SectionType, TimetableEntry

BLOCK_RESOURCE_ID = "BLOCK_RESOURCE"
SHADOW_ENTRY_PREFIX = "sub-entry-"
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
WORK_WEEK_DAYS = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday")


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


def is_teaching_day(value: date) -> bool:
    return weekday_name(value) in WORK_WEEK_DAYS


def shadow_entry_id(vacancy_id: str) -> str:
    return f"{SHADOW_ENTRY_PREFIX}{vacancy_id}"


@dataclass(frozen=True)
class TeacherProfile:
    id: str
    name: str
    role: UserRole
    secondary_roles: tuple[UserRole, ...] = ()
    is_resigned: bool = False

    @property
    def all_roles(self) -> tuple[UserRole, ...]:
        return (self.role, *self.secondary_roles)


@dataclass(frozen=True)
class SubjectLoad:
    subject: str
    periods: int
    room: str | None = None


@dataclass(frozen=True)
class LoadProfile:
    id: str
    teacher_id: str
    grade: str
    loads: tuple[SubjectLoad, ...] = ()
    target_sections: tuple[str, ...] = ()
    group_periods: int = 0

    @property
    def base_periods(self) -> int:
        return sum(max(0, item.periods) for item in self.loads)


@dataclass(frozen=True)
class BlockAllocation:
    teacher_id: str
    teacher_name: str = ""
    subject: str = ""
    room: str | None = None


@dataclass(frozen=True)
class JointBlock:
    id: str
    name: str = ""
    section_names: tuple[str, ...] = ()
    allocations: tuple[BlockAllocation, ...] = ()

    @property
    def teacher_ids(self) -> set[str]:
        return {item.teacher_id for item in self.allocations if item.teacher_id}


@dataclass(frozen=True)
class DutyEntry:
    id: str
    section: SectionType
    class_name: str
    day: str
    slot: int
    subject: str
    teacher_id: str
    teacher_name: str = ""
    date: date | None = None
    block_id: str | None = None
    is_substitution: bool = False
    substitution_id: str | None = None

    @property
    def is_recurring(self) -> bool:
        return self.date is None


@dataclass(frozen=True)
class AttendanceMark:
    user_id: str
    date: date
    check_in: str
    check_out: str | None = None

    @property
    def is_present(self) -> bool:
        value = (self.check_in or "").strip()
        return bool(value) and value.upper() != MEDICAL_LEAVE


@dataclass(frozen=True)
class Vacancy:
    id: str
    date: date
    slot: int
    class_name: str
    subject: str
    section: SectionType
    absent_teacher_id: str
    absent_teacher_name: str = ""
    substitute_teacher_id: str = ""
    substitute_teacher_name: str = PENDING_SUBSTITUTE_NAME
    is_archived: bool = False

    @property
    def is_resolved(self) -> bool:
        return bool(self.substitute_teacher_id)

    @property
    def duty_key(self) -> tuple[date, str, int, str]:
        return (self.date, self.absent_teacher_id, self.slot, self.class_name)


@dataclass(frozen=True)
class Resolution:
    """A resolved vacancy and the shadow entry that must become visible with it."""

    vacancy: Vacancy
    shadow_entry: DutyEntry
    previous: Vacancy = field(compare=False)


def teacher_from_row(row: Teacher) -> TeacherProfile:
    secondary: list[UserRole] = []
    for raw in row.secondary_roles or []:
        try:
            secondary.append(UserRole(raw))
        except ValueError:
            continue
    return TeacherProfile(
        id=row.id,
        name=row.name,
        role=UserRole(row.role),
        secondary_roles=tuple(secondary),
        is_resigned=bool(row.is_resigned),
    )


def load_profile_from_row(row: TeacherAssignment) -> LoadProfile:
    loads = tuple(
        SubjectLoad(
            subject=str(item.get("subject", "")),
            periods=int(item.get("periods") or 0),
            room=item.get("room"),
        )
        for item in (row.loads or [])
    )
    return LoadProfile(
        id=row.id,
        teacher_id=row.teacher_id,
        grade=row.grade,
        loads=loads,
        target_sections=tuple(row.target_sections or []),
        group_periods=int(row.group_periods or 0),
    )


def block_from_row(row: CombinedBlock) -> JointBlock:
    allocations = tuple(
        BlockAllocation(
            teacher_id=str(item.get("teacher_id", "")),
            teacher_name=str(item.get("teacher_name", "")),
            subject=str(item.get("subject", "")),
            room=item.get("room"),
        )
        for item in (row.allocations or [])
    )
    return JointBlock(
        id=row.id,
        name=row.name or "",
        section_names=tuple(row.section_names or []),
        allocations=allocations,
    )


def entry_from_row(row: TimetableEntry) -> DutyEntry:
    return DutyEntry(
        id=row.id,
        section=SectionType(row.section),
        class_name=row.class_name,
        day=row.day,
        slot=row.slot,
        subject=row.subject,
        teacher_id=row.teacher_id,
        teacher_name=row.teacher_name or "",
        date=row.date,
        block_id=row.block_id,
        is_substitution=bool(row.is_substitution),
        substitution_id=row.substitution_id,
    )


def attendance_from_row(row: AttendanceRecord) -> AttendanceMark:
    return AttendanceMark(user_id=row.user_id, date=row.date, check_in=row.check_in or "", check_out=row.check_out)


def vacancy_from_row(row: SubstitutionRecord) -> Vacancy:
    return Vacancy(
        id=row.id,
        date=row.date,
        slot=row.slot,
        class_name=row.class_name,
        subject=row.subject,
        section=SectionType(row.section),
        absent_teacher_id=row.absent_teacher_id,
        absent_teacher_name=row.absent_teacher_name or "",
        substitute_teacher_id=row.substitute_teacher_id or "",
        substitute_teacher_name=row.substitute_teacher_name or PENDING_SUBSTITUTE_NAME,
        is_archived=bool(row.is_archived),
    )
