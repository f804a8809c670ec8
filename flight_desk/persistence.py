"""Durable key-value storage of JSON snapshots."""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .database import init_db, session_scope
from .models import KeyValueEntry

logger = logging.getLogger(__name__)


class PersistenceWriteFailed(RuntimeError):
    """Raised when a value could not be written to or removed from the store."""


class KeyValueStore:
    """JSON values keyed by name, one row per key.

    Reads fall back to the supplied default when a key is missing or its
    payload cannot be decoded. Writes are best effort: ``set`` and ``delete``
    log a failure and report it through their return value.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, db_url: str) -> "KeyValueStore":
        return cls(init_db(db_url))

    def get(self, key: str, default: Any = None) -> Any:
        try:
            with session_scope(self._session_factory) as session:
                entry = session.get(KeyValueEntry, key)
                payload: Optional[str] = entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            logger.warning("Could not read %r, using default: %s", key, exc)
            return default

        if payload is None:
            return default
        try:
            value = json.loads(payload)
        except ValueError as exc:
            logger.warning("Stored value for %r is not valid JSON, using default: %s", key, exc)
            return default
        return default if value is None else value

    def write(self, key: str, value: Any) -> None:
        """Persist ``value`` under ``key`` or raise :class:`PersistenceWriteFailed`."""

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise PersistenceWriteFailed(f"value for {key!r} is not JSON serializable") from exc
        try:
            with session_scope(self._session_factory) as session:
                session.merge(KeyValueEntry(key=key, value=payload, updated_at=datetime.utcnow()))
        except SQLAlchemyError as exc:
            raise PersistenceWriteFailed(f"could not write {key!r}") from exc

    def remove(self, key: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                entry = session.get(KeyValueEntry, key)
                if entry is not None:
                    session.delete(entry)
        except SQLAlchemyError as exc:
            raise PersistenceWriteFailed(f"could not remove {key!r}") from exc

    def set(self, key: str, value: Any) -> bool:
        try:
            self.write(key, value)
        except PersistenceWriteFailed as exc:
            logger.error("PersistenceWriteFailed: %s (%s)", exc, exc.__cause__)
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            self.remove(key)
        except PersistenceWriteFailed as exc:
            logger.error("PersistenceWriteFailed: %s (%s)", exc, exc.__cause__)
            return False
        return True
