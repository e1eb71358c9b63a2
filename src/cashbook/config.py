"""Runtime configuration read from the environment."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from cashbook.sync.outbox import DEFAULT_MAX_RETRIES

TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Attributes:
        home: Directory holding the database, session and log files
        database_path: SQLite file for the local store
        remote_url: Backend base URL; None runs fully offline
        api_key: Public API key for the backend
        force_offline: Treat the network as unreachable
        max_retries: Delivery attempts per queued transaction
        timeout: Remote request timeout in seconds
        sync_interval: Seconds between cycles of 'sync watch'
    """

    home: Path
    database_path: str
    remote_url: Optional[str] = None
    api_key: str = ""
    force_offline: bool = False
    max_retries: int = DEFAULT_MAX_RETRIES
    timeout: float = 10.0
    sync_interval: float = 30.0

    @property
    def session_path(self) -> Path:
        return self.home / "session.json"

    @property
    def log_path(self) -> Path:
        return self.home / "cashbook.log"

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with the non-None values in ``changes`` applied."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in TRUE_VALUES


def load_settings() -> Settings:
    """Build settings from CASHBOOK_* environment variables.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    home = Path(os.environ.get("CASHBOOK_HOME") or Path.home() / ".cashbook")
    database_path = os.environ.get("CASHBOOK_DB_PATH") or str(home / "cashbook.db")
    try:
        max_retries = int(os.environ.get("CASHBOOK_MAX_RETRIES", DEFAULT_MAX_RETRIES))
        timeout = float(os.environ.get("CASHBOOK_TIMEOUT", "10"))
        sync_interval = float(os.environ.get("CASHBOOK_SYNC_INTERVAL", "30"))
    except ValueError as e:
        raise ValueError(f"Invalid numeric setting: {e}")

    return Settings(
        home=home,
        database_path=database_path,
        remote_url=os.environ.get("CASHBOOK_REMOTE_URL") or None,
        api_key=os.environ.get("CASHBOOK_API_KEY", ""),
        force_offline=_env_flag("CASHBOOK_OFFLINE"),
        max_retries=max_retries,
        timeout=timeout,
        sync_interval=sync_interval,
    )
