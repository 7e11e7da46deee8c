"""Postgres-backed token record store using asyncpg."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Optional

import asyncpg

from ..errors import DuplicateTokenError
from ..models import TokenRecord
from .base import TokenStore

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS download_tokens (
    token_id TEXT PRIMARY KEY,
    purchase_id TEXT NOT NULL,
    buyer_id TEXT NOT NULL,
    artifact_id TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    expires_at TIMESTAMPTZ NOT NULL,
    consumed BOOLEAN NOT NULL DEFAULT FALSE,
    consumed_at TIMESTAMPTZ,
    consumed_from TEXT,
    CONSTRAINT download_tokens_expiry_after_creation CHECK (expires_at > created_at),
    CONSTRAINT download_tokens_consumed_has_time CHECK (NOT consumed OR consumed_at IS NOT NULL)
);
CREATE INDEX IF NOT EXISTS download_tokens_purchase_idx ON download_tokens (purchase_id, created_at);
"""

INSERT_SQL = """
INSERT INTO download_tokens (
    token_id, purchase_id, buyer_id, artifact_id, created_at, expires_at, consumed, consumed_at, consumed_from
)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
"""

# Single conditional write; only one concurrent caller can flip the flag.
CONSUME_SQL = """
UPDATE download_tokens
SET consumed = TRUE, consumed_at = $2, consumed_from = $3
WHERE token_id = $1 AND consumed = FALSE
RETURNING *
"""


def _record_from_row(row: Any) -> TokenRecord:
    return TokenRecord(
        token_id=row["token_id"],
        purchase_id=row["purchase_id"],
        buyer_id=row["buyer_id"],
        artifact_id=row["artifact_id"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        consumed=row["consumed"],
        consumed_at=row["consumed_at"],
        consumed_from=row["consumed_from"],
    )


class PostgresTokenStore(TokenStore):
    """Token store persisted in PostgreSQL through an ``asyncpg`` pool."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        pool: Optional[asyncpg.Pool] = None,
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: float = 5.0,
    ) -> None:
        self._dsn = dsn
        self._pool = pool
        self._min_size = min_size
        self._max_size = max_size
        self._command_timeout = command_timeout
        self._pool_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Initialize a connection pool if one was not supplied."""
        if self._pool is not None:
            return
        if not self._dsn:
            raise ValueError("Either `dsn` or `pool` must be provided for PostgresTokenStore.")
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await asyncpg.create_pool(
                    dsn=self._dsn,
                    min_size=self._min_size,
                    max_size=self._max_size,
                    command_timeout=self._command_timeout,
                )

    async def _acquire_pool(self) -> asyncpg.Pool:
        await self.connect()
        assert self._pool is not None
        return self._pool

    async def ensure_schema(self) -> None:
        pool = await self._acquire_pool()
        async with pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)

    async def create(self, record: TokenRecord) -> None:
        pool = await self._acquire_pool()
        async with pool.acquire() as conn:
            try:
                await conn.execute(
                    INSERT_SQL,
                    record.token_id,
                    record.purchase_id,
                    record.buyer_id,
                    record.artifact_id,
                    record.created_at,
                    record.expires_at,
                    record.consumed,
                    record.consumed_at,
                    record.consumed_from,
                )
            except asyncpg.UniqueViolationError as exc:
                raise DuplicateTokenError(record.token_id) from exc

    async def get(self, token_id: str) -> Optional[TokenRecord]:
        pool = await self._acquire_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM download_tokens WHERE token_id=$1", token_id)
            return _record_from_row(row) if row else None

    async def try_consume(
        self,
        token_id: str,
        *,
        consumed_at: datetime,
        consumed_from: Optional[str],
    ) -> Optional[TokenRecord]:
        pool = await self._acquire_pool()
        async with pool.acquire() as conn:
            row = await conn.fetchrow(CONSUME_SQL, token_id, consumed_at, consumed_from)
            return _record_from_row(row) if row else None

    async def list_for_purchase(self, purchase_id: str) -> list[TokenRecord]:
        pool = await self._acquire_pool()
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM download_tokens WHERE purchase_id=$1 ORDER BY created_at",
                purchase_id,
            )
            return [_record_from_row(row) for row in rows]

    async def close(self) -> None:
        """Close the underlying pool if it exists."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
