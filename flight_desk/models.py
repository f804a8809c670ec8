"""Records and storage tables for the flight desk."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class FlightStatus(str, Enum):
    SCHEDULED = "Scheduled"
    DELAYED = "Delayed"
    BOARDING = "Boarding"
    DEPARTED = "Departed"
    CANCELLED = "Cancelled"

    @property
    def accepts_bookings(self) -> bool:
        return self not in (FlightStatus.DEPARTED, FlightStatus.CANCELLED)


def _unique_ids(values: Any, label: str) -> Tuple[str, ...]:
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise ValueError(f"{label} must be a list of ids")
    ids = tuple(str(value) for value in values)
    if len(set(ids)) != len(ids):
        raise ValueError(f"{label} contains duplicate ids")
    return ids


@dataclass(frozen=True)
class User:
    """A registered identity and the flights it has booked, in booking order."""

    id: str
    name: str
    email: str
    password: str
    role: Role = Role.USER
    booked_tickets: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def with_tickets(self, tickets: Tuple[str, ...]) -> "User":
        return replace(self, booked_tickets=tuple(tickets))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password": self.password,
            "role": self.role.value,
            "bookedTickets": list(self.booked_tickets),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "User":
        try:
            return cls(
                id=str(data["id"]),
                name=str(data["name"]),
                email=str(data["email"]),
                password=str(data["password"]),
                role=Role(data.get("role", Role.USER.value)),
                booked_tickets=_unique_ids(data.get("bookedTickets", []), "bookedTickets"),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed user record: {exc}") from exc


@dataclass(frozen=True)
class Flight:
    """A flight and the users booked on it, in booking order."""

    id: str
    flight_number: str
    origin: str
    destination: str
    time: str
    gate: str
    status: FlightStatus = FlightStatus.SCHEDULED
    price: float = 0.0
    booked_by: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.price >= 0:
            raise ValueError("price must be non-negative")

    def with_passengers(self, passengers: Tuple[str, ...]) -> "Flight":
        return replace(self, booked_by=tuple(passengers))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "flightNumber": self.flight_number,
            "origin": self.origin,
            "destination": self.destination,
            "time": self.time,
            "gate": self.gate,
            "status": self.status.value,
            "price": self.price,
            "bookedBy": list(self.booked_by),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Flight":
        try:
            return cls(
                id=str(data["id"]),
                flight_number=str(data["flightNumber"]),
                origin=str(data["origin"]),
                destination=str(data["destination"]),
                time=str(data["time"]),
                gate=str(data["gate"]),
                status=FlightStatus(data.get("status", FlightStatus.SCHEDULED.value)),
                price=float(data.get("price", 0)),
                booked_by=_unique_ids(data.get("bookedBy", []), "bookedBy"),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed flight record: {exc}") from exc
