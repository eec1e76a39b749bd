from __future__ import annotations

from staffcover.models.teacher import UserRole
from staffcover.models.timetable_entry import SectionType
from staffcover.services.records import TeacherProfile

WING_GENERAL_ROLES = frozenset({UserRole.ADMIN, UserRole.INCHARGE_ALL})
SECONDARY_WINGS = frozenset(
    {
        SectionType.SECONDARY_BOYS,
        SectionType.SECONDARY_GIRLS,
        SectionType.SENIOR_SECONDARY_BOYS,
        SectionType.SENIOR_SECONDARY_GIRLS,
    }
)


def wings_for(teacher: TeacherProfile) -> set[SectionType]:
    wings: set[SectionType] = set()
    for role in teacher.all_roles:
        if role in WING_GENERAL_ROLES:
            return set(SectionType)
        # TEACHER_SENIOR_SECONDARY and INCHARGE_SECONDARY both carry the tag.
        if "PRIMARY" in role.value:
            wings.add(SectionType.PRIMARY)
        if "SECONDARY" in role.value:
            wings.update(SECONDARY_WINGS)
    return wings


def is_eligible_for_section(teacher: TeacherProfile, section: SectionType) -> bool:
    return SectionType(section) in wings_for(teacher)


def is_deployable(teacher: TeacherProfile) -> bool:
    """Staff that can be scanned for absence or offered cover at all."""
    return not teacher.is_resigned and teacher.role != UserRole.ADMIN
