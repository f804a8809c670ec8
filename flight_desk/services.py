"""Command surface of the flight desk.

``FlightDesk`` wires the key-value store, both record stores, the session and
the booking engine together and exposes the commands a front end calls. Every
command returns an :class:`~flight_desk.results.Outcome`; nothing here raises
for an expected failure.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Optional, Tuple, Union

from .booking import BookingEngine
from .config import Settings
from .dataset import default_flights, default_users
from .models import Flight, FlightStatus, Role, User
from .persistence import KeyValueStore
from .results import Outcome, Reason
from .session import SessionManager, SessionState
from .stores import FlightStore, IdFactory, IdentityStore, generate_id

logger = logging.getLogger(__name__)


class FlightDesk:
    def __init__(
        self,
        kv: KeyValueStore,
        identities: IdentityStore,
        flights: FlightStore,
        session: SessionManager,
        engine: BookingEngine,
    ) -> None:
        self.kv = kv
        self.identities = identities
        self.flight_store = flights
        self.session_manager = session
        self.engine = engine
        self._lock = identities.lock

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        kv: Optional[KeyValueStore] = None,
        id_factory: IdFactory = generate_id,
    ) -> "FlightDesk":
        """Restore a desk from persisted state, seeding defaults into empty collections."""

        settings = settings or Settings.from_env()
        kv = kv or KeyValueStore.from_url(settings.db_url)
        lock = threading.RLock()
        identities = IdentityStore.restore(
            kv,
            settings.users_key,
            default_users() if settings.seed_defaults else (),
            lock=lock,
            id_factory=id_factory,
        )
        flights = FlightStore.restore(
            kv,
            settings.flights_key,
            default_flights() if settings.seed_defaults else (),
            lock=lock,
            id_factory=id_factory,
        )
        session = SessionManager.restore(identities, kv, settings.session_key)
        engine = BookingEngine(identities, flights, session)
        # Either collection may have fallen back to defaults on its own.
        engine.reconcile()
        return cls(kv, identities, flights, session, engine)

    @property
    def users(self) -> Tuple[User, ...]:
        return self.identities.snapshot()

    @property
    def flights(self) -> Tuple[Flight, ...]:
        return self.flight_store.snapshot()

    @property
    def session(self) -> SessionState:
        return self.session_manager.state

    # -- session -------------------------------------------------------

    def login(self, email: str, password: str) -> Outcome[User]:
        return self.session_manager.login(email, password)

    def register(self, name: str, email: str, password: str) -> Outcome[User]:
        return self.session_manager.register(name, email, password)

    def logout(self) -> Outcome[None]:
        self.session_manager.logout()
        return Outcome.success(None)

    # -- bookings ------------------------------------------------------

    def book(self, flight_id: str) -> Outcome[User]:
        return self.engine.book(flight_id, self.session_manager.identity)

    def unbook(self, flight_id: str) -> Outcome[User]:
        return self.engine.unbook(flight_id, self.session_manager.identity)

    def my_bookings(self) -> Outcome[Tuple[Flight, ...]]:
        identity = self.session_manager.identity
        if identity is None:
            return Outcome.failure(Reason.NOT_AUTHENTICATED)
        return Outcome.success(self.engine.booked_flights(identity.id))

    # -- administration ------------------------------------------------

    def _admin_check(self) -> Optional[Reason]:
        if not self.session_manager.authenticated:
            return Reason.NOT_AUTHENTICATED
        if not self.session_manager.is_admin:
            return Reason.FORBIDDEN
        return None

    def _email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        return any(user.email == email and user.id != exclude_id for user in self.identities.snapshot())

    def add_user(
        self, *, name: str, email: str, password: str, role: Union[Role, str] = Role.USER
    ) -> Outcome[User]:
        denied = self._admin_check()
        if denied:
            return Outcome.failure(denied)
        try:
            role = Role(role)
        except ValueError:
            return Outcome.failure(Reason.INVALID_INPUT)
        with self._lock:
            if self._email_taken(email):
                return Outcome.failure(Reason.DUPLICATE_EMAIL)
            user = self.identities.add(name=name, email=email, password=password, role=role)
        logger.info("Added user %s", user.email)
        return Outcome.success(user)

    def update_user(self, record: User) -> Outcome[User]:
        """Apply an admin edit; the stored id and bookings always win."""

        denied = self._admin_check()
        if denied:
            return Outcome.failure(denied)
        try:
            role = Role(record.role)
        except ValueError:
            return Outcome.failure(Reason.INVALID_INPUT)
        with self._lock:
            existing = self.identities.find_by_id(record.id)
            if existing is None:
                return Outcome.failure(Reason.NOT_FOUND)
            if self._email_taken(record.email, exclude_id=record.id):
                return Outcome.failure(Reason.DUPLICATE_EMAIL)
            updated = replace(record, role=role, booked_tickets=existing.booked_tickets)
            self.identities.update(updated)
            self.session_manager.refresh(updated)
        logger.info("Updated user %s", updated.email)
        return Outcome.success(updated)

    def delete_user(self, user_id: str) -> Outcome[User]:
        denied = self._admin_check()
        if denied:
            return Outcome.failure(denied)
        return self.engine.delete_user_cascade(user_id)

    def add_flight(
        self,
        *,
        flight_number: str,
        origin: str,
        destination: str,
        time: str,
        gate: str,
        status: Union[FlightStatus, str] = FlightStatus.SCHEDULED,
        price: float = 0.0,
    ) -> Outcome[Flight]:
        denied = self._admin_check()
        if denied:
            return Outcome.failure(denied)
        try:
            flight = self.flight_store.add(
                flight_number=flight_number,
                origin=origin,
                destination=destination,
                time=time,
                gate=gate,
                status=status,
                price=price,
            )
        except (TypeError, ValueError):
            return Outcome.failure(Reason.INVALID_INPUT)
        logger.info("Added flight %s", flight.flight_number)
        return Outcome.success(flight)

    def update_flight(self, record: Flight) -> Outcome[Flight]:
        """Apply an admin edit; the stored id and passengers always win."""

        denied = self._admin_check()
        if denied:
            return Outcome.failure(denied)
        with self._lock:
            existing = self.flight_store.find_by_id(record.id)
            if existing is None:
                return Outcome.failure(Reason.NOT_FOUND)
            try:
                updated = replace(
                    record,
                    status=FlightStatus(record.status),
                    price=float(record.price),
                    booked_by=existing.booked_by,
                )
            except (TypeError, ValueError):
                return Outcome.failure(Reason.INVALID_INPUT)
            self.flight_store.update(updated)
        logger.info("Updated flight %s", updated.flight_number)
        return Outcome.success(updated)

    def delete_flight(self, flight_id: str) -> Outcome[Flight]:
        denied = self._admin_check()
        if denied:
            return Outcome.failure(denied)
        return self.engine.delete_flight_cascade(flight_id)
