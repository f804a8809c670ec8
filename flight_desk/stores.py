"""Identity and flight stores.

Each store owns one immutable snapshot (a tuple of records) and writes the
whole collection through to the key-value store after every mutation.
Mutations return the new snapshot.
"""
from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Callable, Generic, Iterable, Optional, Tuple, Type, TypeVar, Union

from .models import Flight, FlightStatus, Role, User
from .persistence import KeyValueStore

logger = logging.getLogger(__name__)

R = TypeVar("R", User, Flight)

IdFactory = Callable[[], str]


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


class _SnapshotStore(Generic[R]):
    record_type: Type[R]

    def __init__(
        self,
        kv: KeyValueStore,
        key: str,
        records: Iterable[R] = (),
        *,
        lock: Optional[threading.RLock] = None,
        id_factory: IdFactory = generate_id,
    ) -> None:
        self._kv = kv
        self._key = key
        self._records: Tuple[R, ...] = tuple(records)
        self._lock = lock if lock is not None else threading.RLock()
        self._id_factory = id_factory

    @classmethod
    def restore(cls, kv: KeyValueStore, key: str, default: Iterable[R] = (), **kwargs: Any):
        """Load the persisted collection, or ``default`` when it is empty or unreadable."""

        records = cls._decode(key, kv.get(key, None))
        if not records:
            records = tuple(default)
        return cls(kv, key, records, **kwargs)

    @classmethod
    def _decode(cls, key: str, raw: Any) -> Tuple[R, ...]:
        if raw is None:
            return ()
        if not isinstance(raw, list):
            logger.warning("Stored %r is not a list, using defaults", key)
            return ()
        try:
            records = tuple(cls.record_type.from_dict(item) for item in raw)
        except ValueError as exc:
            logger.warning("Stored %r is malformed, using defaults: %s", key, exc)
            return ()
        if len({record.id for record in records}) != len(records):
            logger.warning("Stored %r has duplicate ids, using defaults", key)
            return ()
        return records

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def snapshot(self) -> Tuple[R, ...]:
        with self._lock:
            return self._records

    def find_by_id(self, record_id: str) -> Optional[R]:
        with self._lock:
            return next((record for record in self._records if record.id == record_id), None)

    def update(self, record: R) -> Tuple[R, ...]:
        with self._lock:
            self._records = tuple(record if existing.id == record.id else existing for existing in self._records)
            self._persist()
            return self._records

    def remove(self, record_id: str) -> Tuple[R, ...]:
        with self._lock:
            self._records = tuple(record for record in self._records if record.id != record_id)
            self._persist()
            return self._records

    def replace_all(self, records: Iterable[R]) -> Tuple[R, ...]:
        """Swap in a whole new collection with a single write."""

        with self._lock:
            self._records = tuple(records)
            self._persist()
            return self._records

    def _append(self, record: R) -> R:
        self._records = self._records + (record,)
        self._persist()
        return record

    def _new_id(self) -> str:
        taken = {record.id for record in self._records}
        while True:
            candidate = self._id_factory()
            if candidate not in taken:
                return candidate

    def _persist(self) -> bool:
        return self._kv.set(self._key, [record.to_dict() for record in self._records])


class IdentityStore(_SnapshotStore[User]):
    record_type = User

    def add(self, *, name: str, email: str, password: str, role: Union[Role, str] = Role.USER) -> User:
        """Create a user with a fresh id and no bookings.

        Email uniqueness is not checked here; registration and the admin
        commands do that.
        """

        with self._lock:
            user = User(id=self._new_id(), name=name, email=email, password=password, role=Role(role))
            return self._append(user)

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return next((user for user in self._records if user.email == email), None)


class FlightStore(_SnapshotStore[Flight]):
    record_type = Flight

    def add(
        self,
        *,
        flight_number: str,
        origin: str,
        destination: str,
        time: str,
        gate: str,
        status: Union[FlightStatus, str] = FlightStatus.SCHEDULED,
        price: float = 0.0,
    ) -> Flight:
        with self._lock:
            flight = Flight(
                id=self._new_id(),
                flight_number=flight_number,
                origin=origin,
                destination=destination,
                time=time,
                gate=gate,
                status=FlightStatus(status),
                price=float(price),
            )
            return self._append(flight)
