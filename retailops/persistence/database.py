from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from retailops.core.config import get_settings
from retailops.persistence.models import Base


def create_engine_from_url(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # Sessions are handed to worker threads by the API server.
        connect_args["check_same_thread"] = False
    return create_engine(url, future=True, pool_pre_ping=True, connect_args=connect_args)


settings = get_settings()
engine = create_engine_from_url(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db() -> None:
    Base.metadata.create_all(bind=engine)


def new_session() -> Session:
    # Resolved at call time so tests can swap ``SessionLocal``.
    return SessionLocal()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    session = new_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()