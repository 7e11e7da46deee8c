"""Abstract token record store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..models import TokenRecord


class TokenStore(ABC):
    """Persistence for token records with an atomic consume primitive."""

    @abstractmethod
    async def create(self, record: TokenRecord) -> None:
        """Persist a new record; raise ``DuplicateTokenError`` if the id exists."""

    @abstractmethod
    async def get(self, token_id: str) -> Optional[TokenRecord]:
        """Fetch a record by token id."""

    @abstractmethod
    async def try_consume(
        self,
        token_id: str,
        *,
        consumed_at: datetime,
        consumed_from: Optional[str],
    ) -> Optional[TokenRecord]:
        """Mark the record consumed only if it is currently unconsumed.

        Returns the consumed record for the single caller that wins, and
        ``None`` for every other caller or when the record does not exist.
        """

    @abstractmethod
    async def list_for_purchase(self, purchase_id: str) -> list[TokenRecord]:
        """Return every record minted for a purchase, oldest first."""

    async def close(self) -> None:
        """Close store resources if needed."""
