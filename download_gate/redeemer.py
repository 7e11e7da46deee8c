"""Single-use redemption of bearer download tokens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import structlog

from .catalog.base import ArtifactResolver
from .errors import OK, ErrorKind
from .models import ArtifactRef, TokenRecord
from .storage.base import TokenStore
from .token.signer import BearerTokenSigner, token_fingerprint
from .utils.time import Clock, utc_now

logger = structlog.get_logger()


@dataclass(frozen=True)
class RedeemResult:
    ok: bool
    reason: str
    artifact: Optional[ArtifactRef] = None
    record: Optional[TokenRecord] = None


class TokenRedeemer:
    """Validate a presented bearer token, burn its record and resolve the artifact."""

    def __init__(
        self,
        *,
        store: TokenStore,
        artifacts: ArtifactResolver,
        signer: BearerTokenSigner,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.artifacts = artifacts
        self.signer = signer
        self._clock = clock

    async def redeem(self, token: str, origin: Optional[str] = None) -> RedeemResult:
        """Redeem ``token`` once.

        Checks run in a fixed order and stop at the first failure:
        signature and shape, signature expiry, record lookup, record expiry,
        prior consumption, atomic consume, artifact resolution. The first
        two never touch the store. A single clock reading is used for every
        expiry comparison in the call.
        """
        now = self._clock()
        log = logger.bind(token=token_fingerprint(token), origin=origin)

        verified = self.signer.verify(token, now=now)
        if not verified.valid:
            return self._reject(log, verified.reason)

        assert verified.claims is not None
        claims = verified.claims
        log = log.bind(token_id=claims.token_id)

        record = await self.store.get(claims.token_id)
        if record is None or not claims.matches(record):
            return self._reject(log, ErrorKind.NOT_FOUND)

        if record.is_expired(now):
            return self._reject(log, ErrorKind.EXPIRED)

        if record.consumed:
            return self._reject(log, ErrorKind.ALREADY_USED)

        consumed = await self.store.try_consume(record.token_id, consumed_at=now, consumed_from=origin)
        if consumed is None:
            return self._reject(log, ErrorKind.ALREADY_USED)

        artifact = await self.artifacts.resolve_artifact(consumed.artifact_id)
        if artifact is None:
            # The token stays burned even though nothing can be delivered.
            log.warning("token_redeemed_artifact_missing", artifact_id=consumed.artifact_id)
            return RedeemResult(False, ErrorKind.NOT_FOUND, record=consumed)

        log.info("token_redeemed", artifact_id=artifact.artifact_id)
        return RedeemResult(True, OK, artifact=artifact, record=consumed)

    @staticmethod
    def _reject(log, reason: str) -> RedeemResult:
        log.info("token_redeem_rejected", reason=ErrorKind(reason).value)
        return RedeemResult(False, reason)
