from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from wms.core.config import DATABASE_URL, DB_ECHO


def build_engine(url: str = DATABASE_URL, *, echo: bool = DB_ECHO):
    """Create a sync engine; in-memory SQLite shares one connection."""
    url = url.replace("+asyncpg", "")  # sync engine only
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)
    return create_engine(url, echo=echo, pool_pre_ping=True)


engine = build_engine()


def init_db(bind=None) -> None:
    """Create all tables registered on ``SQLModel.metadata`` (dev / tests)."""
    import wms.models  # noqa: F401  (registers every table)

    SQLModel.metadata.create_all(bind or engine)


def get_session() -> Iterator[Session]:
    """FastAPI dependency: one short-lived session per request."""
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Explicit transaction boundary for one rule-engine operation.

    Usage::

        with transaction(session):
            session.add(...)
        # commits on success, rolls back on exception
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
