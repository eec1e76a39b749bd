from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from staffcover.core.config import get_settings

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.database_timeout_seconds}
    return {"connect_timeout": settings.database_timeout_seconds}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url), pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
