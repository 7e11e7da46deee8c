"""Download token issuance bound to a verified purchase owner."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from uuid import uuid4

import structlog

from .catalog.base import PurchaseLookup
from .errors import OK, ErrorKind
from .models import BearerClaims, TokenRecord
from .storage.base import TokenStore
from .token.signer import BearerTokenSigner
from .utils.time import Clock, utc_now

logger = structlog.get_logger()

DEFAULT_VALIDITY = timedelta(hours=24)


@dataclass(frozen=True)
class IssueResult:
    ok: bool
    reason: str
    token: Optional[str] = None
    record: Optional[TokenRecord] = None


class TokenIssuer:
    """Mint single-use download tokens for the owner of a purchase."""

    def __init__(
        self,
        *,
        store: TokenStore,
        purchases: PurchaseLookup,
        signer: BearerTokenSigner,
        validity: timedelta = DEFAULT_VALIDITY,
        clock: Clock = utc_now,
    ) -> None:
        if validity <= timedelta(0):
            raise ValueError("Token validity window must be positive.")
        self.store = store
        self.purchases = purchases
        self.signer = signer
        self.validity = validity
        self._clock = clock

    async def issue(self, purchase_id: str, buyer_id: str) -> IssueResult:
        """Create one new token record for ``purchase_id`` and return its bearer string.

        The requesting buyer must own the purchase. Each successful call
        persists exactly one record; repeated calls are not deduplicated.
        """
        if not purchase_id or not buyer_id:
            raise ValueError("purchase_id and buyer_id must be non-empty.")

        log = logger.bind(purchase_id=purchase_id, buyer_id=buyer_id)

        purchase = await self.purchases.find_purchase(purchase_id)
        if purchase is None:
            log.info("token_issue_rejected", reason=ErrorKind.NOT_FOUND.value)
            return IssueResult(False, ErrorKind.NOT_FOUND)

        if purchase.buyer_id != buyer_id:
            log.warning("token_issue_rejected", reason=ErrorKind.OWNERSHIP_MISMATCH.value)
            return IssueResult(False, ErrorKind.OWNERSHIP_MISMATCH)

        now = self._clock()
        record = TokenRecord(
            token_id=str(uuid4()),
            purchase_id=purchase.purchase_id,
            buyer_id=purchase.buyer_id,
            artifact_id=purchase.artifact_id,
            created_at=now,
            expires_at=now + self.validity,
        )
        await self.store.create(record)

        token = self.signer.sign(BearerClaims.for_record(record))
        log.info("token_issued", token_id=record.token_id, expires_at=record.expires_at.isoformat())
        return IssueResult(True, OK, token=token, record=record)
