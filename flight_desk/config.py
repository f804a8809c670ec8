"""Environment driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DB_URL = "sqlite+pysqlite:///flight_desk.db"


@dataclass(frozen=True)
class Settings:
    db_url: str = DEFAULT_DB_URL
    seed_defaults: bool = True
    log_level: str = "WARNING"
    users_key: str = "users"
    flights_key: str = "flights"
    session_key: str = "currentUser"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            db_url=env.get("FLIGHT_DESK_DB_URL", DEFAULT_DB_URL),
            seed_defaults=env.get("FLIGHT_DESK_SEED", "1").strip().lower() not in ("0", "false", "no"),
            log_level=env.get("FLIGHT_DESK_LOG_LEVEL", "WARNING").upper(),
        )
