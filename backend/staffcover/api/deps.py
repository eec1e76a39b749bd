from collections.abc import Generator

from fastapi import Header, Request
from sqlalchemy.orm import Session

from staffcover.db.session import SessionLocal
from staffcover.services.engine import SubstitutionEngine


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_engine(request: Request) -> SubstitutionEngine:
    return request.app.state.engine


def get_actor_id(x_actor_id: str | None = Header(default=None, max_length=64)) -> str | None:
    value = (x_actor_id or "").strip()
    return value or None
