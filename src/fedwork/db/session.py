"""Engine, declarative base and request-scoped sessions.

The schema itself is owned by the alembic migrations; nothing here creates
tables.
"""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from fedwork.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the federation tables."""


# Registers every model on Base.metadata for alembic autogenerate.
import fedwork.models  # noqa: E402,F401


def _connect_args(url: str) -> dict[str, object]:
    # Request handlers may run on a different thread than the one that opened the connection.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    connect_args=_connect_args(settings.database_url),
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request, closed afterwards."""
    with SessionLocal() as db:
        yield db
