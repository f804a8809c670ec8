"""Flight desk: users, flights and the bookings that link them."""
from .booking import BookingEngine
from .config import Settings
from .models import Flight, FlightStatus, Role, User
from .persistence import KeyValueStore, PersistenceWriteFailed
from .results import Outcome, Reason
from .services import FlightDesk
from .session import SessionManager, SessionState
from .stores import FlightStore, IdentityStore

__all__ = [
    "BookingEngine",
    "Flight",
    "FlightDesk",
    "FlightStatus",
    "FlightStore",
    "IdentityStore",
    "KeyValueStore",
    "Outcome",
    "PersistenceWriteFailed",
    "Reason",
    "Role",
    "SessionManager",
    "SessionState",
    "Settings",
    "User",
]
