from builders import MONDAY, block, entry, present, school, teacher, vacancy
from staffcover.services.availability import (
    FREE,
    NOT_PRESENT,
    OCCUPIED,
    build_busy_set,
    resolve_availability,
)
from staffcover.services.records import BLOCK_RESOURCE_ID


def test_free_teacher_is_available():
    verdict = resolve_availability(school(), "carla", MONDAY, 1)
    assert verdict.available
    assert verdict.cause == FREE


def test_missing_empty_and_medical_attendance_mean_not_present():
    snapshot = school(
        attendance=[
            present("bilal", check_in=""),
            present("carla", check_in="MEDICAL"),
        ]
    )

    for teacher_id in ("bilal", "carla", "dev"):
        verdict = resolve_availability(snapshot, teacher_id, MONDAY, 5)
        assert verdict.cause == NOT_PRESENT


def test_recurring_entry_occupies_its_weekday_only():
    snapshot = school()

    monday = resolve_availability(snapshot, "bilal", MONDAY, 1)
    assert monday.cause == OCCUPIED
    assert monday.conflicting_entry_ids == ("e-bilal-1",)

    snapshot.put_attendance([present("bilal", on_date=MONDAY.replace(day=20))])
    tuesday = resolve_availability(snapshot, "bilal", MONDAY.replace(day=20), 1)
    assert tuesday.available


def test_dated_entry_only_occupies_its_date():
    snapshot = school(entries=[entry("extra", "dev", slot=4, on_date=MONDAY)])
    snapshot.put_attendance([present("dev", on_date=MONDAY.replace(day=26))])

    assert resolve_availability(snapshot, "dev", MONDAY, 4).cause == OCCUPIED
    assert resolve_availability(snapshot, "dev", MONDAY.replace(day=26), 4).available


def test_combined_block_allocations_are_busy():
    snapshot = school(
        entries=[entry("games", BLOCK_RESOURCE_ID, slot=6, block_id="blk-games")],
        blocks=[block("blk-games", "carla", "dev")],
    )

    busy = build_busy_set(snapshot, MONDAY, 6)

    assert busy.teacher_ids == {"carla", "dev"}
    assert BLOCK_RESOURCE_ID not in busy
    assert resolve_availability(snapshot, "dev", MONDAY, 6, busy=busy).conflicting_entry_ids == ("games",)


def test_resolved_substitution_occupies_the_substitute():
    snapshot = school(vacancies=[vacancy("v-1", slot=5, substitute="dev")])

    verdict = resolve_availability(snapshot, "dev", MONDAY, 5)

    assert verdict.cause == OCCUPIED
    assert verdict.conflicting_vacancy_ids == ("v-1",)


def test_archived_and_pending_substitutions_do_not_occupy_anyone():
    snapshot = school(
        vacancies=[
            vacancy("v-archived", slot=5, substitute="dev", archived=True),
            vacancy("v-pending", slot=5, class_name="9B"),
        ]
    )

    assert resolve_availability(snapshot, "dev", MONDAY, 5).available


def test_vacancy_under_evaluation_is_excluded():
    snapshot = school(vacancies=[vacancy("v-1", slot=5, substitute="dev")])

    verdict = resolve_availability(snapshot, "dev", MONDAY, 5, ignore_vacancy_id="v-1")

    assert verdict.available


def test_unknown_teacher_is_not_present():
    snapshot = school(teachers=[teacher("aisha")])
    assert resolve_availability(snapshot, "ghost", MONDAY, 1).cause == NOT_PRESENT
