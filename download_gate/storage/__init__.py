"""Token record storage backends."""

from __future__ import annotations

import os
from typing import Optional

from .base import TokenStore
from .memory import InMemoryTokenStore

__all__ = ["TokenStore", "InMemoryTokenStore", "PostgresTokenStore", "create_store_from_env"]


def __getattr__(name: str):
    if name == "PostgresTokenStore":
        from .postgres import PostgresTokenStore

        return PostgresTokenStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def create_store_from_env(dsn: Optional[str] = None, *, command_timeout: float = 5.0) -> TokenStore:
    """Create Postgres storage if a DSN is configured, otherwise in-memory."""
    dsn = dsn or os.getenv("DOWNLOAD_GATE_PG_DSN") or os.getenv("DATABASE_URL")
    if dsn:
        from .postgres import PostgresTokenStore

        return PostgresTokenStore(dsn, command_timeout=command_timeout)
    return InMemoryTokenStore()
