"""Command line driver for the flight desk."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, List, Optional, Sequence

from tabulate import tabulate

from .config import Settings
from .models import Flight, User
from .results import Outcome
from .services import FlightDesk

FLIGHT_HEADERS = ["ID", "Flight", "Route", "Time", "Gate", "Status", "Price", "Booked"]
USER_HEADERS = ["ID", "Name", "Email", "Role", "Bookings"]


def _flight_rows(flights: Iterable[Flight]) -> List[list]:
    return [
        [
            flight.id,
            flight.flight_number,
            f"{flight.origin}-{flight.destination}",
            flight.time,
            flight.gate,
            flight.status.value,
            f"{flight.price:.2f}",
            len(flight.booked_by),
        ]
        for flight in flights
    ]


def _user_rows(users: Iterable[User]) -> List[list]:
    return [[user.id, user.name, user.email, user.role.value, len(user.booked_tickets)] for user in users]


def _render(rows: Sequence[list], headers: Sequence[str]) -> str:
    return tabulate(rows, headers=headers, tablefmt="github")


def parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage users, flights and bookings of the flight desk.")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("flights", help="List all flights.")
    commands.add_parser("users", help="List all users.")
    commands.add_parser("whoami", help="Show the logged in user.")
    commands.add_parser("bookings", help="List the flights booked by the logged in user.")
    commands.add_parser("check", help="Report bookings recorded on only one side.")
    commands.add_parser("logout", help="End the current session.")

    login = commands.add_parser("login", help="Log in with email and password.")
    login.add_argument("email")
    login.add_argument("password")

    register = commands.add_parser("register", help="Create an account and log in.")
    register.add_argument("name")
    register.add_argument("email")
    register.add_argument("password")

    for name, help_text in (("book", "Book a flight."), ("unbook", "Cancel a booking.")):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("flight_id", help="Identifier of the flight (see 'flights').")

    return parser.parse_args(list(argv))


def _report(outcome: Outcome, success: str) -> int:
    if not outcome:
        print(f"Error: {outcome.message}", file=sys.stderr)
        return 1
    print(success)
    return 0


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    desk = FlightDesk.from_settings(settings)

    if args.command == "flights":
        print(_render(_flight_rows(desk.flights), FLIGHT_HEADERS))
        return 0
    if args.command == "users":
        print(_render(_user_rows(desk.users), USER_HEADERS))
        return 0
    if args.command == "whoami":
        identity = desk.session.identity
        print(f"{identity.name} <{identity.email}> ({identity.role.value})" if identity else "Not logged in")
        return 0
    if args.command == "bookings":
        outcome = desk.my_bookings()
        if not outcome:
            return _report(outcome, "")
        print(_render(_flight_rows(outcome.value), FLIGHT_HEADERS))
        return 0
    if args.command == "check":
        problems = desk.engine.check_consistency()
        if not problems:
            print("All bookings are consistent")
            return 0
        print(_render([list(pair) for pair in problems], ["User", "Flight"]))
        return 1
    if args.command == "logout":
        return _report(desk.logout(), "Logged out")
    if args.command == "login":
        return _report(desk.login(args.email, args.password), f"Logged in as {args.email}")
    if args.command == "register":
        return _report(desk.register(args.name, args.email, args.password), f"Registered {args.email}")
    if args.command == "book":
        return _report(desk.book(args.flight_id), f"Booked {args.flight_id}")
    if args.command == "unbook":
        return _report(desk.unbook(args.flight_id), f"Cancelled booking for {args.flight_id}")
    raise ValueError(f"Unsupported command '{args.command}'.")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
