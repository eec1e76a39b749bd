from datetime import date

from staffcover.core.exceptions import PersistenceFailure
from staffcover.models.teacher import UserRole
from staffcover.models.timetable_entry import SectionType
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.records import (
    AttendanceMark,
    BlockAllocation,
    DutyEntry,
    JointBlock,
    LoadProfile,
    SubjectLoad,
    TeacherProfile,
    Vacancy,
    weekday_name,
)
from staffcover.services.snapshot import ScheduleSnapshot

MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 18)
THURSDAY = date(2026, 10, 22)
FRIDAY = date(2026, 10, 23)
NEXT_SUNDAY = date(2026, 10, 25)


def teacher(teacher_id, name=None, role=UserRole.TEACHER_SECONDARY, *, secondary_roles=(), is_resigned=False):
    return TeacherProfile(
        id=teacher_id,
        name=name or teacher_id.title(),
        role=role,
        secondary_roles=tuple(secondary_roles),
        is_resigned=is_resigned,
    )


def entry(
    entry_id,
    teacher_id,
    *,
    slot=1,
    class_name="8A",
    section=SectionType.SECONDARY_BOYS,
    day="Monday",
    subject="Maths",
    on_date=None,
    block_id=None,
):
    return DutyEntry(
        id=entry_id,
        section=section,
        class_name=class_name,
        day=weekday_name(on_date) if on_date else day,
        slot=slot,
        subject=subject,
        teacher_id=teacher_id,
        date=on_date,
        block_id=block_id,
    )


def block(block_id, *teacher_ids):
    return JointBlock(
        id=block_id,
        name=block_id,
        allocations=tuple(BlockAllocation(teacher_id=item, subject="Games") for item in teacher_ids),
    )


def vacancy(
    vacancy_id,
    absent="aisha",
    *,
    on_date=MONDAY,
    slot=1,
    class_name="8A",
    section=SectionType.SECONDARY_BOYS,
    substitute="",
    archived=False,
):
    return Vacancy(
        id=vacancy_id,
        date=on_date,
        slot=slot,
        class_name=class_name,
        subject="Maths",
        section=section,
        absent_teacher_id=absent,
        absent_teacher_name=absent.title(),
        substitute_teacher_id=substitute,
        substitute_teacher_name=substitute.title() if substitute else "PENDING ASSIGNMENT",
        is_archived=archived,
    )


def present(user_id, on_date=MONDAY, check_in="07:30"):
    return AttendanceMark(user_id=user_id, date=on_date, check_in=check_in)


def profile(teacher_id, periods, *, group_periods=0, grade="8"):
    return LoadProfile(
        id=f"load-{teacher_id}-{grade}",
        teacher_id=teacher_id,
        grade=grade,
        loads=(SubjectLoad(subject="Maths", periods=periods),),
        group_periods=group_periods,
    )


class RecordingStore:
    """In-memory stand-in for the SQL store that remembers every write."""

    def __init__(self):
        self.calls = []

    def save_teachers(self, teachers, *, actor_id=None):
        self.calls.append(("save_teachers", len(teachers)))

    def save_entries(self, entries, *, actor_id=None):
        self.calls.append(("save_entries", len(entries)))

    def save_blocks(self, blocks, *, actor_id=None):
        self.calls.append(("save_blocks", len(blocks)))

    def save_load_profiles(self, profiles, *, actor_id=None):
        self.calls.append(("save_load_profiles", len(profiles)))

    def save_attendance(self, marks, *, actor_id=None):
        self.calls.append(("save_attendance", len(marks)))

    def insert_vacancies(self, vacancies, *, action="", actor_id=None):
        self.calls.append(("insert_vacancies", [item.id for item in vacancies]))

    def save_resolution(self, vacancy, shadow_entry, *, actor_id=None, source="manual"):
        self.calls.append(("save_resolution", vacancy.id, shadow_entry.id))

    def archive(self, vacancy_ids, *, actor_id=None, details=None):
        self.calls.append(("archive", list(vacancy_ids)))

    def purge(self, vacancy, shadow_id, *, actor_id=None):
        self.calls.append(("purge", vacancy.id, shadow_id))


class FailingStore(RecordingStore):
    def _fail(self, operation):
        raise PersistenceFailure(operation, "database is locked")

    def insert_vacancies(self, vacancies, *, action="", actor_id=None):
        self._fail("vacancy creation")

    def save_resolution(self, vacancy, shadow_entry, *, actor_id=None, source="manual"):
        self._fail("substitute assignment")

    def archive(self, vacancy_ids, *, actor_id=None, details=None):
        self._fail("archive")

    def purge(self, vacancy, shadow_id, *, actor_id=None):
        self._fail("purge")


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def substitution_assigned(self, vacancy, previous=None):
        self.sent.append((vacancy.id, vacancy.substitute_teacher_id))


def make_engine(snapshot=None, *, store=None, notifier=None, cap=35):
    return SubstitutionEngine(
        snapshot=snapshot or ScheduleSnapshot(),
        store=store or RecordingStore(),
        notifier=notifier or RecordingNotifier(),
        cap=cap,
    )


def school(**extra):
    """A secondary wing on a Monday: Aisha is absent, Bilal, Carla and Dev are in."""
    teachers = [
        teacher("aisha", "Aisha"),
        teacher("bilal", "Bilal"),
        teacher("carla", "Carla"),
        teacher("dev", "Dev"),
        teacher("pria", "Pria", UserRole.TEACHER_PRIMARY),
        teacher("root", "Root", UserRole.ADMIN),
    ]
    entries = [
        entry("e-aisha-1", "aisha", slot=1, class_name="8A"),
        entry("e-aisha-3", "aisha", slot=3, class_name="9B"),
        entry("e-bilal-1", "bilal", slot=1, class_name="8B"),
        entry("e-carla-2", "carla", slot=2, class_name="8C"),
    ]
    attendance = [present(item) for item in ("bilal", "carla", "dev", "pria", "root")]
    profiles = [profile("bilal", 20), profile("carla", 10), profile("dev", 30, group_periods=2)]
    return ScheduleSnapshot(
        teachers=extra.get("teachers", teachers),
        entries=extra.get("entries", entries),
        blocks=extra.get("blocks", ()),
        load_profiles=extra.get("load_profiles", profiles),
        attendance=extra.get("attendance", attendance),
        vacancies=extra.get("vacancies", ()),
    )
