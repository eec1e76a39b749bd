import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from staffcover.api.deps import get_db
from staffcover.db.base import Base
from staffcover.main import app
from staffcover.services.engine import SubstitutionEngine
from staffcover.services.ledger_store import SqlLedgerStore
from staffcover.services.notifications import NotificationWriter
from staffcover.services.snapshot import ScheduleSnapshot


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def engine(session_factory):
    return SubstitutionEngine(
        snapshot=ScheduleSnapshot(),
        store=SqlLedgerStore(session_factory),
        notifier=NotificationWriter(session_factory),
        cap=35,
    )


@pytest.fixture()
def client(session_factory, engine):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.engine = engine

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.engine = None
