import pytest
from sqlalchemy import select

from builders import MONDAY, entry, present, profile, teacher, vacancy
from staffcover.core.config import Settings
from staffcover.core.exceptions import PersistenceFailure
from staffcover.models.activity_log import ActivityLog
from staffcover.models.notification import Notification
from staffcover.models.substitution_record import SubstitutionRecord
from staffcover.models.timetable_entry import TimetableEntry
from staffcover.services import audit
from staffcover.services.engine import build_engine
from staffcover.services.ledger_store import SqlLedgerStore


def seed(engine):
    engine.import_teachers([teacher("aisha"), teacher("carla"), teacher("dev")])
    engine.import_entries([entry("e-aisha-1", "aisha"), entry("e-aisha-3", "aisha", slot=3, class_name="9B")])
    engine.import_load_profiles([profile("carla", 10)])
    engine.record_attendance([present("carla"), present("dev")])


def test_duplicate_duty_tuple_is_rejected_by_the_store(session_factory):
    store = SqlLedgerStore(session_factory)
    store.insert_vacancies([vacancy("v-1")])

    with pytest.raises(PersistenceFailure) as excinfo:
        store.insert_vacancies([vacancy("v-2")])

    assert excinfo.value.operation == "vacancy creation"
    with session_factory() as db:
        assert [row.id for row in db.execute(select(SubstitutionRecord)).scalars()] == ["v-1"]


def test_commit_persists_record_shadow_audit_and_notifications(engine, session_factory):
    seed(engine)
    created = engine.scanner.scan(MONDAY, actor_id="office")
    target = next(item for item in created if item.slot == 1)

    engine.assignments.commit(target.id, "carla", actor_id="office")

    with session_factory() as db:
        record = db.get(SubstitutionRecord, target.id)
        assert record.substitute_teacher_id == "carla"
        assert record.substitute_teacher_name == "Carla"
        shadow = db.get(TimetableEntry, f"sub-entry-{target.id}")
        assert shadow.is_substitution
        assert shadow.substitution_id == target.id
        assert shadow.date == MONDAY
        actions = [row.action for row in db.execute(select(ActivityLog)).scalars()]
        assert audit.SCAN in actions
        assert audit.ASSIGN in actions
        recipients = sorted(row.user_id for row in db.execute(select(Notification)).scalars())
        assert recipients == ["aisha", "carla"]


def test_purge_and_archive_reach_the_database(engine, session_factory):
    seed(engine)
    created = engine.scanner.scan(MONDAY)
    first, second = sorted(created, key=lambda item: item.slot)
    engine.assignments.commit(first.id, "carla")

    engine.lifecycle.purge(first.id, confirm=True)
    engine.lifecycle.archive(MONDAY, first.section, confirm=True)

    with session_factory() as db:
        assert db.get(SubstitutionRecord, first.id) is None
        assert db.get(TimetableEntry, f"sub-entry-{first.id}") is None
        assert db.get(SubstitutionRecord, second.id).is_archived


def test_engine_rebuilt_from_database_sees_the_same_state(engine, session_factory):
    seed(engine)
    created = engine.scanner.scan(MONDAY)
    target = next(item for item in created if item.slot == 1)
    engine.assignments.commit(target.id, "carla")

    rebuilt = build_engine(session_factory, Settings(weekly_load_cap=35))

    assert rebuilt.get_vacancy(target.id).substitute_teacher_id == "carla"
    assert rebuilt.snapshot.entry(f"sub-entry-{target.id}").teacher_id == "carla"
    assert rebuilt.workload("carla", MONDAY).total == 11
    assert rebuilt.scanner.scan(MONDAY) == []
