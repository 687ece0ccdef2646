"""
Runtime settings.

Everything is read from environment variables (optionally seeded from a
.env file by env.load_env). Paths default to a data/ directory under the
working directory:

    data/cities.json     city dataset (read-only)
    data/members.json    member collection (json backend)
    data/meetings/       one file per meeting (json backend)
    data/meetglobe.db    SQLite database (sqlite backend)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BACKENDS = ("json", "sqlite")


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    cities_path: Path
    members_path: Path
    meetings_dir: Path
    db_path: Path
    backend: str = "json"
    log_level: str = "INFO"
    log_dir: Optional[Path] = None

    @classmethod
    def from_env(cls, data_dir: Optional[Path] = None) -> "Settings":
        base = Path(data_dir or os.getenv("MEETGLOBE_DATA_DIR", "data"))
        backend = os.getenv("MEETGLOBE_BACKEND", "json").lower()
        if backend not in BACKENDS:
            raise ValueError(f"MEETGLOBE_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")
        log_dir = os.getenv("MEETGLOBE_LOG_DIR")
        return cls(
            data_dir=base,
            cities_path=Path(os.getenv("MEETGLOBE_CITIES_PATH", base / "cities.json")),
            members_path=Path(os.getenv("MEETGLOBE_MEMBERS_PATH", base / "members.json")),
            meetings_dir=Path(os.getenv("MEETGLOBE_MEETINGS_DIR", base / "meetings")),
            db_path=Path(os.getenv("MEETGLOBE_DB_PATH", base / "meetglobe.db")),
            backend=backend,
            log_level=os.getenv("MEETGLOBE_LOG_LEVEL", "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else None,
        )
