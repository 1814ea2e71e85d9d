"""Environment-driven settings for the CLI, database and forecaster."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .domain.strategy import Strategy

load_dotenv()

ENV_PREFIX = "CARDCAST_"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env(name: str, default: str) -> str:
    return os.getenv(ENV_PREFIX + name, default).strip()


def _env_flag(name: str, default: bool = False) -> bool:
    """Read ``CARDCAST_<name>`` as an on/off switch."""

    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    """Read ``CARDCAST_<name>`` as a whole number; blank means *default*."""

    raw = os.getenv(ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


class BaseConfig:
    """Settings shared by every environment."""

    APP_NAME = "CardCast"
    DB_FILENAME = "cardcast.db"
    MAX_FORECAST_MONTHS = 360

    def __init__(self) -> None:
        self.DEV_MODE = _env_flag("DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = _env("DATABASE_URL", "") or self._default_database_url()
        self.FORECAST_MONTHS = _env_int("FORECAST_MONTHS", 60)
        self.DEFAULT_STRATEGY = _env("STRATEGY", Strategy.AVALANCHE.value).lower()
        self.CLIFF_LOOKAHEAD_MONTHS = _env_int("CLIFF_LOOKAHEAD", 6)
        self.LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()
        self._validate()

    def _validate(self) -> None:
        if not 1 <= self.FORECAST_MONTHS <= self.MAX_FORECAST_MONTHS:
            raise ValueError(
                f"{ENV_PREFIX}FORECAST_MONTHS must be between 1 and {self.MAX_FORECAST_MONTHS}."
            )
        if self.DEFAULT_STRATEGY not in {strategy.value for strategy in Strategy}:
            raise ValueError(
                f"CARDCAST_STRATEGY must be avalanche or snowball, got {self.DEFAULT_STRATEGY!r}."
            )
        if self.CLIFF_LOOKAHEAD_MONTHS < 0:
            raise ValueError("CARDCAST_CLIFF_LOOKAHEAD cannot be negative.")
        if self.LOG_LEVEL not in LOG_LEVELS:
            raise ValueError(f"CARDCAST_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}.")

    def _resolve_data_dir(self) -> Path:
        """Create and return the folder holding the database and ``logs/``."""

        path = Path(_env("DATA_DIR", "instance")).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _default_database_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Keyword arguments for :func:`sqlmodel.create_engine`."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Local development: verbose console and the SQLite file in DATA_DIR."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Throwaway configuration backed by an in-memory database."""

    __test__ = False  # keep pytest from collecting this class

    DEBUG = True
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
