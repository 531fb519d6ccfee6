"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "MaxiMost"
    DB_FILENAME = "maximost.db"
    LOG_FILENAME = "maximost.log"
    SQLITE_PRAGMAS = {"foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("MAXIMOST_DEV_MODE", default=True)
        self.LOG_LEVEL = os.getenv("MAXIMOST_LOG_LEVEL", "INFO").upper()
        self.SNAPSHOT_FILENAME = os.getenv("MAXIMOST_SNAPSHOT_FILENAME", "habits.json")
        self.DATABASE_URL = os.getenv("MAXIMOST_DATABASE_URL", self._build_sqlite_url())

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the database, logs and snapshots."""

        data_root = os.getenv("MAXIMOST_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        db_path = Path(self.DATA_DIR) / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    @property
    def snapshot_path(self) -> Path:
        """Default location of the local-storage style JSON snapshot."""

        return Path(self.DATA_DIR) / self.SNAPSHOT_FILENAME

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            engine_options["connect_args"] = {"check_same_thread": False}
        return engine_options


class TestConfig(BaseConfig):
    """Configuration for tests; keeps everything in memory."""

    __test__ = False
    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True
        self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        options = super().sqlalchemy_engine_options()
        options["poolclass"] = StaticPool
        return options
