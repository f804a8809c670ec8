"""The authenticated identity of the running process."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .models import Role, User
from .persistence import KeyValueStore
from .results import Outcome, Reason
from .stores import IdentityStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionState:
    authenticated: bool = False
    identity: Optional[User] = None


ANONYMOUS = SessionState()


class SessionManager:
    """Anonymous -> Authenticated(identity) -> Anonymous, for the process lifetime.

    The identity is cached in the key-value store so a restart resumes the
    session. A restored identity is trusted without checking credentials
    again; the cache is a convenience, not a security boundary.
    """

    def __init__(self, identities: IdentityStore, kv: KeyValueStore, key: str = "currentUser") -> None:
        self._identities = identities
        self._kv = kv
        self._key = key
        self._lock = identities.lock
        self._state = ANONYMOUS

    @classmethod
    def restore(cls, identities: IdentityStore, kv: KeyValueStore, key: str = "currentUser") -> "SessionManager":
        manager = cls(identities, kv, key)
        cached = kv.get(key, None)
        if cached is None:
            return manager
        try:
            identity = User.from_dict(cached)
        except ValueError as exc:
            logger.warning("Ignoring unreadable cached identity: %s", exc)
            return manager
        manager._state = SessionState(authenticated=True, identity=identity)
        logger.info("Restored session for %s", identity.email)
        return manager

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[User]:
        return self._state.identity

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    @property
    def is_admin(self) -> bool:
        identity = self._state.identity
        return identity is not None and identity.role is Role.ADMIN

    def login(self, email: str, password: str, users: Optional[Iterable[User]] = None) -> Outcome[User]:
        pool = self._identities.snapshot() if users is None else users
        user = next((u for u in pool if u.email == email and u.password == password), None)
        if user is None:
            return Outcome.failure(Reason.INVALID_CREDENTIALS)
        self._activate(user)
        logger.info("Logged in %s", user.email)
        return Outcome.success(user)

    def register(
        self, name: str, email: str, password: str, users: Optional[Iterable[User]] = None
    ) -> Outcome[User]:
        with self._lock:
            pool = tuple(self._identities.snapshot() if users is None else users)
            if any(u.email == email for u in pool):
                return Outcome.failure(Reason.DUPLICATE_EMAIL)
            user = self._identities.add(name=name, email=email, password=password, role=Role.USER)
            return self.login(email, password, pool + (user,))

    def logout(self) -> None:
        with self._lock:
            if self._state.identity is not None:
                logger.info("Logged out %s", self._state.identity.email)
            self._state = ANONYMOUS
            self._kv.delete(self._key)

    def refresh(self, user: User) -> bool:
        """Replace the active identity with ``user`` if they are the same person."""

        with self._lock:
            current = self._state.identity
            if current is None or current.id != user.id:
                return False
            self._activate(user)
            return True

    def forget(self, user_id: str) -> bool:
        """Log out when the active identity has been deleted."""

        with self._lock:
            current = self._state.identity
            if current is None or current.id != user_id:
                return False
            self.logout()
            return True

    def _activate(self, user: User) -> None:
        with self._lock:
            self._state = SessionState(authenticated=True, identity=user)
            self._kv.set(self._key, user.to_dict())
