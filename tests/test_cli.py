import pytest

from flight_desk import cli


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    monkeypatch.setenv("FLIGHT_DESK_DB_URL", f"sqlite+pysqlite:///{tmp_path / 'cli.db'}")
    monkeypatch.delenv("FLIGHT_DESK_SEED", raising=False)


def test_flights_lists_seeded_flights(capsys):
    assert cli.main(["flights"]) == 0
    out = capsys.readouterr().out
    assert "PK-755" in out
    assert "PEW-DXB" in out
    assert "Departed" in out


def test_session_survives_between_invocations(capsys):
    assert cli.main(["whoami"]) == 0
    assert "Not logged in" in capsys.readouterr().out

    assert cli.main(["login", "ali@pasi.com", "password"]) == 0
    assert cli.main(["book", "f002"]) == 0
    capsys.readouterr()

    assert cli.main(["whoami"]) == 0
    assert "Ali Khan <ali@pasi.com> (user)" in capsys.readouterr().out
    assert cli.main(["bookings"]) == 0
    assert "QR-601" in capsys.readouterr().out
    assert cli.main(["check"]) == 0
    assert "consistent" in capsys.readouterr().out


def test_failures_print_reason_and_exit_nonzero(capsys):
    assert cli.main(["book", "f001"]) == 1
    assert "Please log in first." in capsys.readouterr().err

    assert cli.main(["login", "admin@pasi.com", "wrong"]) == 1
    assert "Invalid email or password." in capsys.readouterr().err

    cli.main(["login", "admin@pasi.com", "password"])
    assert cli.main(["book", "f005"]) == 1
    assert "closed for booking" in capsys.readouterr().err


def test_register_unbook_and_logout(capsys):
    assert cli.main(["register", "Sara", "sara@example.com", "secret"]) == 0
    assert cli.main(["register", "Sara", "sara@example.com", "secret"]) == 1
    assert cli.main(["book", "f001"]) == 0
    assert cli.main(["unbook", "f001"]) == 0
    assert cli.main(["unbook", "f001"]) == 1
    assert cli.main(["logout"]) == 0
    assert cli.main(["bookings"]) == 1
    capsys.readouterr()

    assert cli.main(["users"]) == 0
    assert "sara@example.com" in capsys.readouterr().out
