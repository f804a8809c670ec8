"""Failure reasons and the result type returned by every command."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Reason(str, Enum):
    NOT_AUTHENTICATED = "NotAuthenticated"
    NOT_FOUND = "NotFound"
    ALREADY_BOOKED = "AlreadyBooked"
    NOT_BOOKED = "NotBooked"
    BOOKING_CLOSED = "BookingClosed"
    DUPLICATE_EMAIL = "DuplicateEmail"
    INVALID_CREDENTIALS = "InvalidCredentials"
    FORBIDDEN = "Forbidden"
    INVALID_INPUT = "InvalidInput"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    Reason.NOT_AUTHENTICATED: "Please log in first.",
    Reason.NOT_FOUND: "No such user or flight.",
    Reason.ALREADY_BOOKED: "You have already booked this flight.",
    Reason.NOT_BOOKED: "You have not booked this flight.",
    Reason.BOOKING_CLOSED: "This flight is closed for booking.",
    Reason.DUPLICATE_EMAIL: "User with this email already exists.",
    Reason.INVALID_CREDENTIALS: "Invalid email or password.",
    Reason.FORBIDDEN: "Only administrators can do that.",
    Reason.INVALID_INPUT: "The submitted values are not valid.",
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or the reason the command did nothing.

    Falsy on failure so callers can write ``if not desk.book(...)``.
    """

    value: Optional[T] = None
    reason: Optional[Reason] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def message(self) -> str:
        return self.reason.message if self.reason is not None else ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: Reason) -> "Outcome[T]":
        return cls(reason=reason)
