from builders import teacher
from staffcover.models.teacher import UserRole
from staffcover.models.timetable_entry import SectionType
from staffcover.services.eligibility import is_deployable, is_eligible_for_section, wings_for
from staffcover.services.records import TeacherProfile


def test_primary_roles_cover_only_the_primary_wing():
    profile = teacher("pria", role=UserRole.TEACHER_PRIMARY)
    assert wings_for(profile) == {SectionType.PRIMARY}
    assert not is_eligible_for_section(profile, SectionType.SECONDARY_GIRLS)


def test_secondary_roles_cover_every_secondary_wing():
    profile = teacher("sam", role=UserRole.TEACHER_SENIOR_SECONDARY)
    assert SectionType.PRIMARY not in wings_for(profile)
    assert is_eligible_for_section(profile, SectionType.SECONDARY_BOYS)
    assert is_eligible_for_section(profile, SectionType.SENIOR_SECONDARY_GIRLS)


def test_secondary_roles_list_extends_eligibility():
    profile = teacher("mia", role=UserRole.TEACHER_SECONDARY, secondary_roles=[UserRole.TEACHER_PRIMARY])
    assert is_eligible_for_section(profile, SectionType.PRIMARY)
    assert is_eligible_for_section(profile, "SECONDARY_BOYS")


def test_general_roles_cover_every_wing():
    for role in (UserRole.INCHARGE_ALL, UserRole.ADMIN):
        assert wings_for(teacher("lead", role=role)) == set(SectionType)


def test_admin_staff_cover_nothing():
    assert wings_for(teacher("office", role=UserRole.ADMIN_STAFF)) == set()


def test_resigned_and_admin_are_not_deployable():
    assert is_deployable(teacher("bilal"))
    assert not is_deployable(teacher("gone", is_resigned=True))
    assert not is_deployable(TeacherProfile(id="root", name="Root", role=UserRole.ADMIN))
