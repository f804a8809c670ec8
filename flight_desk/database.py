"""SQLAlchemy plumbing for the key-value snapshot table."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import DEFAULT_DB_URL
from .models import Base


def init_db(db_url: str = DEFAULT_DB_URL) -> sessionmaker[Session]:
    """Create ``kv_entries`` if missing and return a session factory bound to ``db_url``."""

    options: Dict[str, Any] = {}
    if db_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        # ``:memory:`` databases exist per connection; keep a single one.
        if db_url.endswith(":memory:"):
            options["poolclass"] = StaticPool
    engine = create_engine(db_url, **options)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Commit on success, roll back and re-raise on error."""

    with session_factory() as session, session.begin():
        yield session
