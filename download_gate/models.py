"""Purchase, artifact and token record datatypes."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .utils.time import to_epoch_seconds


@dataclass(frozen=True)
class Purchase:
    purchase_id: str
    buyer_id: str
    artifact_id: str
    purchased_at: datetime


@dataclass(frozen=True)
class Artifact:
    """A purchasable report and the private key of its stored file."""

    artifact_id: str
    title: str
    storage_key: str
    price: float = 0.0


@dataclass(frozen=True)
class ArtifactRef:
    """Resolved location of an artifact, handed back on successful redemption."""

    artifact_id: str
    title: str
    location: str

    @property
    def filename(self) -> str:
        return f"{self.title}.pdf"


@dataclass(frozen=True)
class TokenRecord:
    """Authoritative server-side state for one issued download token.

    A record is created unconsumed and is replaced exactly once, by the
    consume step, with ``consumed=True``. It is never reverted or deleted.
    """

    token_id: str
    purchase_id: str
    buyer_id: str
    artifact_id: str
    created_at: datetime
    expires_at: datetime
    consumed: bool = False
    consumed_at: Optional[datetime] = None
    consumed_from: Optional[str] = None

    def __post_init__(self) -> None:
        if self.expires_at <= self.created_at:
            raise ValueError("Token record expiry must be later than its creation time.")
        if self.consumed and self.consumed_at is None:
            raise ValueError("A consumed token record requires a consumption time.")

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def consume(self, *, consumed_at: datetime, consumed_from: Optional[str]) -> "TokenRecord":
        """Return the consumed copy of this record."""
        if self.consumed:
            raise ValueError(f"Token record '{self.token_id}' is already consumed.")
        return replace(self, consumed=True, consumed_at=consumed_at, consumed_from=consumed_from)


@dataclass(frozen=True)
class BearerClaims:
    """Claims carried inside a signed bearer token.

    ``issued_at`` and ``expires_at`` are whole unix seconds; ``expires_at``
    is the signature's own expiry and mirrors the record expiry.
    """

    token_id: str
    buyer_id: str
    artifact_id: str
    purchase_id: str
    issued_at: int
    expires_at: int

    @classmethod
    def for_record(cls, record: TokenRecord) -> "BearerClaims":
        return cls(
            token_id=record.token_id,
            buyer_id=record.buyer_id,
            artifact_id=record.artifact_id,
            purchase_id=record.purchase_id,
            issued_at=to_epoch_seconds(record.created_at),
            expires_at=to_epoch_seconds(record.expires_at),
        )

    def to_dict(self) -> dict:
        return {
            "token_id": self.token_id,
            "buyer_id": self.buyer_id,
            "artifact_id": self.artifact_id,
            "purchase_id": self.purchase_id,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
        }

    def matches(self, record: TokenRecord) -> bool:
        """Return True when the claims bind to the given record."""
        return (
            self.token_id == record.token_id
            and self.buyer_id == record.buyer_id
            and self.artifact_id == record.artifact_id
            and self.purchase_id == record.purchase_id
        )
