import threading

import pytest

from flight_desk.dataset import default_flights, default_users
from flight_desk.models import Flight, FlightStatus, Role, User
from flight_desk.persistence import KeyValueStore
from flight_desk.stores import FlightStore, IdentityStore


def make_kv() -> KeyValueStore:
    return KeyValueStore.from_url("sqlite+pysqlite:///:memory:")


def test_add_user_assigns_id_and_empty_bookings():
    kv = make_kv()
    store = IdentityStore(kv, "users")
    user = store.add(name="Sara", email="sara@example.com", password="pw")

    assert user.id
    assert user.booked_tickets == ()
    assert user.role is Role.USER
    assert store.snapshot() == (user,)
    assert kv.get("users") == [user.to_dict()]


def test_add_does_not_check_email_uniqueness():
    store = IdentityStore(make_kv(), "users")
    first = store.add(name="A", email="same@example.com", password="pw")
    second = store.add(name="B", email="same@example.com", password="pw")
    assert first.id != second.id
    assert len(store.snapshot()) == 2


def test_generated_ids_are_unique_even_when_factory_repeats():
    ids = iter(["dup", "dup", "dup", "next"])
    store = FlightStore(make_kv(), "flights", id_factory=lambda: next(ids))
    first = store.add(flight_number="PK-1", origin="PEW", destination="DXB", time="10:00", gate="1")
    second = store.add(flight_number="PK-2", origin="PEW", destination="DOH", time="11:00", gate="2")
    assert (first.id, second.id) == ("dup", "next")


def test_update_replaces_matching_record_only():
    store = IdentityStore(make_kv(), "users", default_users())
    admin = store.find_by_email("admin@pasi.com")
    renamed = User(id=admin.id, name="Root", email=admin.email, password=admin.password, role=admin.role)

    snapshot = store.update(renamed)

    assert store.find_by_id(admin.id).name == "Root"
    assert len(snapshot) == 2
    assert store.find_by_email("ali@pasi.com").name == "Ali Khan"


def test_update_with_unknown_id_leaves_collection_unchanged():
    store = IdentityStore(make_kv(), "users", default_users())
    before = store.snapshot()
    ghost = User(id="ghost", name="Nobody", email="no@example.com", password="pw")
    assert store.update(ghost) == before


def test_remove_does_not_touch_the_other_store():
    kv = make_kv()
    lock = threading.RLock()
    users = IdentityStore(kv, "users", default_users(), lock=lock)
    flights = FlightStore(kv, "flights", default_flights(), lock=lock)
    flight = flights.find_by_id("f001")
    flights.update(flight.with_passengers(("user2",)))
    users.update(users.find_by_id("user2").with_tickets(("f001",)))

    users.remove("user2")

    assert users.find_by_id("user2") is None
    assert flights.find_by_id("f001").booked_by == ("user2",)


def test_lookups_return_none_when_absent():
    users = IdentityStore(make_kv(), "users", default_users())
    flights = FlightStore(make_kv(), "flights", default_flights())
    assert users.find_by_email("ADMIN@pasi.com") is None
    assert users.find_by_id("missing") is None
    assert flights.find_by_id("missing") is None


def test_add_flight_defaults():
    store = FlightStore(make_kv(), "flights")
    flight = store.add(flight_number="TK-1", origin="PEW", destination="IST", time="09:00", gate="7", price=300)
    assert flight.status is FlightStatus.SCHEDULED
    assert flight.booked_by == ()
    assert flight.price == 300.0


def test_restore_round_trips_persisted_collections():
    kv = make_kv()
    flights = FlightStore(kv, "flights")
    flights.add(flight_number="TK-1", origin="PEW", destination="IST", time="09:00", gate="7", price=300)
    flights.add(
        flight_number="QR-2",
        origin="PEW",
        destination="DOH",
        time="12:00",
        gate="3",
        status="Delayed",
        price=120.5,
    )

    restored = FlightStore.restore(kv, "flights", default_flights())

    assert restored.snapshot() == flights.snapshot()


def test_restore_uses_default_when_empty():
    kv = make_kv()
    kv.set("flights", [])
    restored = FlightStore.restore(kv, "flights", default_flights())
    assert restored.snapshot() == default_flights()


def test_restore_uses_default_when_malformed(caplog):
    kv = make_kv()
    kv.set("users", [{"id": "u1", "name": "No email"}])
    restored = IdentityStore.restore(kv, "users", default_users())
    assert restored.snapshot() == default_users()
    assert "malformed" in caplog.text

    kv.set("users", {"not": "a list"})
    assert IdentityStore.restore(kv, "users", ()).snapshot() == ()


def test_restore_rejects_negative_price_and_duplicate_bookings():
    kv = make_kv()
    record = default_flights()[0].to_dict()
    kv.set("flights", [dict(record, price=-5)])
    assert FlightStore.restore(kv, "flights", ()).snapshot() == ()

    kv.set("flights", [dict(record, bookedBy=["u1", "u1"])])
    assert FlightStore.restore(kv, "flights", ()).snapshot() == ()


def test_record_dicts_use_stored_key_names():
    flight = Flight.from_dict(
        {
            "id": "f001",
            "flightNumber": "PK-755",
            "origin": "PEW",
            "destination": "DXB",
            "time": "10:30",
            "gate": "05",
            "status": "Scheduled",
            "price": 450,
            "bookedBy": ["user2"],
        }
    )
    assert flight.booked_by == ("user2",)
    assert flight.to_dict()["bookedBy"] == ["user2"]
    assert User.from_dict(default_users()[0].to_dict()) == default_users()[0]


def test_nan_price_is_rejected():
    record = dict(default_flights()[0].to_dict(), price=float("nan"))
    with pytest.raises(ValueError):
        Flight.from_dict(record)
    with pytest.raises(ValueError):
        FlightStore(make_kv(), "flights").add(
            flight_number="X-1", origin="A", destination="B", time="1", gate="1", price=float("nan")
        )
