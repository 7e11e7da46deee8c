"""In-memory token record store."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Optional

from ..errors import DuplicateTokenError
from ..models import TokenRecord
from .base import TokenStore


class InMemoryTokenStore(TokenStore):
    """Dict-backed store; consumption is a compare-and-set under a per-record lock."""

    def __init__(self) -> None:
        self.records: dict[str, TokenRecord] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._create_lock = threading.Lock()

    async def create(self, record: TokenRecord) -> None:
        with self._create_lock:
            if record.token_id in self.records:
                raise DuplicateTokenError(record.token_id)
            self._locks[record.token_id] = threading.Lock()
            self.records[record.token_id] = record

    async def get(self, token_id: str) -> Optional[TokenRecord]:
        return self.records.get(token_id)

    async def try_consume(
        self,
        token_id: str,
        *,
        consumed_at: datetime,
        consumed_from: Optional[str],
    ) -> Optional[TokenRecord]:
        lock = self._locks.get(token_id)
        if lock is None:
            return None
        with lock:
            current = self.records[token_id]
            if current.consumed:
                return None
            updated = current.consume(consumed_at=consumed_at, consumed_from=consumed_from)
            self.records[token_id] = updated
            return updated

    async def list_for_purchase(self, purchase_id: str) -> list[TokenRecord]:
        with self._create_lock:
            snapshot = list(self.records.values())
        matches = [r for r in snapshot if r.purchase_id == purchase_id]
        return sorted(matches, key=lambda r: r.created_at)
