"""Runtime configuration for the download gate."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional

from .errors import ConfigurationError
from .utils.time import utc_now


def _parse_number(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.") from exc
    if not math.isfinite(value):
        raise ConfigurationError(f"{name} must be a finite number, got {raw!r}.")
    return value


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}.") from exc


@dataclass
class GateConfig:
    """Signing secret, token validity window and collaborator locations."""

    secret_key: str
    validity_hours: float = 24.0
    base_url: str = "http://localhost:3000"
    files_dir: str = "./mock-files"
    pg_dsn: Optional[str] = None
    store_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ConfigurationError("A signing secret is required (DOWNLOAD_GATE_SECRET).")
        if not math.isfinite(self.validity_hours) or self.validity_hours <= 0:
            raise ConfigurationError("Token validity must be a positive number of hours.")
        try:
            utc_now() + timedelta(hours=self.validity_hours)
        except OverflowError as exc:
            raise ConfigurationError(f"Token validity of {self.validity_hours} hours is out of range.") from exc
        if not math.isfinite(self.store_timeout_seconds) or self.store_timeout_seconds <= 0:
            raise ConfigurationError("Store timeout must be a positive number of seconds.")
        if not 0 < self.port <= 65535:
            raise ConfigurationError(f"Port must be between 1 and 65535, got {self.port}.")

    @property
    def validity(self) -> timedelta:
        return timedelta(hours=self.validity_hours)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "GateConfig":
        env = os.environ if env is None else env
        return cls(
            secret_key=env.get("DOWNLOAD_GATE_SECRET", ""),
            validity_hours=_parse_number(env, "TOKEN_EXPIRY_HOURS", 24.0),
            base_url=env.get("BASE_URL") or "http://localhost:3000",
            files_dir=env.get("MOCK_FILES_DIR") or "./mock-files",
            pg_dsn=env.get("DOWNLOAD_GATE_PG_DSN") or env.get("DATABASE_URL") or None,
            store_timeout_seconds=_parse_number(env, "DOWNLOAD_GATE_STORE_TIMEOUT", 5.0),
            log_level=env.get("LOG_LEVEL") or "INFO",
            host=env.get("HOST") or "0.0.0.0",
            port=_parse_int(env, "PORT", 3000),
        )
