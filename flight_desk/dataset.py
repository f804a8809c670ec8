"""Default records used when the persisted collections are empty."""
from __future__ import annotations

from typing import Sequence, Tuple

from .models import Flight, FlightStatus, Role, User

USERS: Sequence[Tuple[str, str, str, str, Role]] = (
    ("user1", "Admin User", "admin@pasi.com", "password", Role.ADMIN),
    ("user2", "Ali Khan", "ali@pasi.com", "password", Role.USER),
)

ORIGIN = "PEW"
FLIGHTS: Sequence[Tuple[str, str, str, str, str, FlightStatus, float]] = (
    ("f001", "PK-755", "DXB", "10:30", "05", FlightStatus.SCHEDULED, 450),
    ("f002", "QR-601", "DOH", "12:45", "11", FlightStatus.DELAYED, 520),
    ("f003", "PA-405", "KHI", "14:00", "03", FlightStatus.BOARDING, 180),
    ("f004", "GF-011", "BAH", "16:20", "08", FlightStatus.SCHEDULED, 490),
    ("f005", "SV-345", "RUH", "18:50", "12", FlightStatus.DEPARTED, 600),
    ("f006", "PK-740", "ISB", "20:15", "04", FlightStatus.SCHEDULED, 150),
    ("f007", "TK-144", "IST", "21:30", "07", FlightStatus.SCHEDULED, 750),
    ("f008", "PK-727", "AUH", "23:00", "10", FlightStatus.SCHEDULED, 500),
    ("f009", "G9-551", "SHJ", "01:30", "09", FlightStatus.SCHEDULED, 420),
    ("f010", "FZ-350", "DXB", "02:45", "06", FlightStatus.SCHEDULED, 460),
)


def default_users() -> Tuple[User, ...]:
    return tuple(
        User(id=user_id, name=name, email=email, password=password, role=role)
        for user_id, name, email, password, role in USERS
    )


def default_flights() -> Tuple[Flight, ...]:
    return tuple(
        Flight(
            id=flight_id,
            flight_number=number,
            origin=ORIGIN,
            destination=destination,
            time=time,
            gate=gate,
            status=status,
            price=float(price),
        )
        for flight_id, number, destination, time, gate, status, price in FLIGHTS
    )
