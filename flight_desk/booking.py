"""Booking engine.

The only component that mutates both stores in one operation. It keeps
``User.booked_tickets`` and ``Flight.booked_by`` mirror images of each other:
a flight id is in a user's tickets exactly when the user id is in the
flight's passengers. Every operation runs under the lock the two stores
share, so other threads never see one side updated without the other.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

from .models import Flight, User
from .results import Outcome, Reason
from .session import SessionManager
from .stores import FlightStore, IdentityStore

logger = logging.getLogger(__name__)


class BookingEngine:
    def __init__(
        self,
        identities: IdentityStore,
        flights: FlightStore,
        session: Optional[SessionManager] = None,
    ) -> None:
        if identities.lock is not flights.lock:
            raise ValueError("identity and flight stores must share a lock")
        self._identities = identities
        self._flights = flights
        self._session = session
        self._lock = identities.lock

    def book(self, flight_id: str, acting_user: Optional[User]) -> Outcome[User]:
        """Book ``flight_id`` for ``acting_user`` and return the updated user."""

        if acting_user is None:
            return Outcome.failure(Reason.NOT_AUTHENTICATED)
        with self._lock:
            flight = self._flights.find_by_id(flight_id)
            # The caller's copy may be stale; the store holds the truth.
            user = self._identities.find_by_id(acting_user.id)
            if flight is None or user is None:
                return Outcome.failure(Reason.NOT_FOUND)
            if user.id in flight.booked_by or flight.id in user.booked_tickets:
                return Outcome.failure(Reason.ALREADY_BOOKED)
            if not flight.status.accepts_bookings:
                return Outcome.failure(Reason.BOOKING_CLOSED)

            self._flights.update(flight.with_passengers(flight.booked_by + (user.id,)))
            updated = user.with_tickets(user.booked_tickets + (flight.id,))
            self._identities.update(updated)
            self._refresh(updated)
        logger.info("Booked %s on %s", updated.email, flight.flight_number)
        return Outcome.success(updated)

    def unbook(self, flight_id: str, acting_user: Optional[User]) -> Outcome[User]:
        """Cancel the booking of ``flight_id`` for ``acting_user``."""

        if acting_user is None:
            return Outcome.failure(Reason.NOT_AUTHENTICATED)
        with self._lock:
            flight = self._flights.find_by_id(flight_id)
            user = self._identities.find_by_id(acting_user.id)
            if flight is None or user is None:
                return Outcome.failure(Reason.NOT_FOUND)
            if user.id not in flight.booked_by and flight.id not in user.booked_tickets:
                return Outcome.failure(Reason.NOT_BOOKED)

            self._flights.update(flight.with_passengers(tuple(u for u in flight.booked_by if u != user.id)))
            updated = user.with_tickets(tuple(f for f in user.booked_tickets if f != flight.id))
            self._identities.update(updated)
            self._refresh(updated)
        logger.info("Unbooked %s from %s", updated.email, flight.flight_number)
        return Outcome.success(updated)

    def delete_flight_cascade(self, flight_id: str) -> Outcome[Flight]:
        """Remove a flight and scrub it from every user's tickets in one write."""

        with self._lock:
            flight = self._flights.find_by_id(flight_id)
            if flight is None:
                return Outcome.failure(Reason.NOT_FOUND)
            self._flights.remove(flight_id)

            affected: List[User] = []
            users = []
            for user in self._identities.snapshot():
                if flight_id in user.booked_tickets:
                    user = user.with_tickets(tuple(f for f in user.booked_tickets if f != flight_id))
                    affected.append(user)
                users.append(user)
            if affected:
                self._identities.replace_all(users)
                for user in affected:
                    self._refresh(user)
        logger.info("Deleted flight %s, released %d booking(s)", flight.flight_number, len(affected))
        return Outcome.success(flight)

    def delete_user_cascade(self, user_id: str) -> Outcome[User]:
        """Remove a user and scrub them from every flight's passengers in one write."""

        with self._lock:
            user = self._identities.find_by_id(user_id)
            if user is None:
                return Outcome.failure(Reason.NOT_FOUND)
            self._identities.remove(user_id)

            released = 0
            flights = []
            for flight in self._flights.snapshot():
                if user_id in flight.booked_by:
                    flight = flight.with_passengers(tuple(u for u in flight.booked_by if u != user_id))
                    released += 1
                flights.append(flight)
            if released:
                self._flights.replace_all(flights)
            if self._session is not None:
                self._session.forget(user_id)
        logger.info("Deleted user %s, released %d booking(s)", user.email, released)
        return Outcome.success(user)

    def booked_flights(self, user_id: str) -> Tuple[Flight, ...]:
        """Flights booked by ``user_id`` in booking order."""

        with self._lock:
            user = self._identities.find_by_id(user_id)
            if user is None:
                return ()
            by_id = {flight.id: flight for flight in self._flights.snapshot()}
            return tuple(by_id[f] for f in user.booked_tickets if f in by_id)

    def passengers(self, flight_id: str) -> Tuple[User, ...]:
        """Users booked on ``flight_id`` in booking order."""

        with self._lock:
            flight = self._flights.find_by_id(flight_id)
            if flight is None:
                return ()
            by_id = {user.id: user for user in self._identities.snapshot()}
            return tuple(by_id[u] for u in flight.booked_by if u in by_id)

    def check_consistency(self) -> List[Tuple[str, str]]:
        """Return the (user id, flight id) pairs recorded on only one side."""

        with self._lock:
            from_users: Set[Tuple[str, str]] = {
                (user.id, flight_id) for user in self._identities.snapshot() for flight_id in user.booked_tickets
            }
            from_flights: Set[Tuple[str, str]] = {
                (user_id, flight.id) for flight in self._flights.snapshot() for user_id in flight.booked_by
            }
        return sorted(from_users ^ from_flights)

    def reconcile(self) -> List[Tuple[str, str]]:
        """Drop every booking recorded on only one side and return the dropped pairs.

        Each store is written at most once.
        """

        with self._lock:
            broken = set(self.check_consistency())
            if not broken:
                return []

            users = []
            changed_users: List[User] = []
            for user in self._identities.snapshot():
                kept = tuple(f for f in user.booked_tickets if (user.id, f) not in broken)
                if kept != user.booked_tickets:
                    user = user.with_tickets(kept)
                    changed_users.append(user)
                users.append(user)
            flights = []
            flights_changed = False
            for flight in self._flights.snapshot():
                kept = tuple(u for u in flight.booked_by if (u, flight.id) not in broken)
                if kept != flight.booked_by:
                    flight = flight.with_passengers(kept)
                    flights_changed = True
                flights.append(flight)

            if flights_changed:
                self._flights.replace_all(flights)
            if changed_users:
                self._identities.replace_all(users)
                for user in changed_users:
                    self._refresh(user)
        logger.warning("Dropped %d one-sided booking(s): %s", len(broken), sorted(broken))
        return sorted(broken)

    def _refresh(self, user: User) -> None:
        if self._session is not None:
            self._session.refresh(user)
