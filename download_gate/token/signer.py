"""HMAC-SHA256 signing and verification of bearer download tokens."""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import re
from datetime import datetime
from hashlib import sha256
from typing import Any

from ..errors import OK, ErrorKind
from ..models import BearerClaims
from ..utils.hashing import canonical_json, sha256_hex
from ..utils.time import to_epoch_seconds
from .types import VerifyResult

_STR_CLAIMS = ("token_id", "buyer_id", "artifact_id", "purchase_id")
_INT_CLAIMS = ("issued_at", "expires_at")
_B64URL_RE = re.compile(r"[A-Za-z0-9_-]+")


def token_fingerprint(token: str) -> str:
    """Short digest used to reference a bearer token in logs."""
    return sha256_hex(token)[:16]


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("utf-8").rstrip("=")


def _b64decode(text: str) -> bytes:
    """Decode unpadded base64url, accepting only the one encoding ``_b64encode`` produces."""
    if not _B64URL_RE.fullmatch(text):
        raise ValueError("not base64url")
    padded = text + "=" * (-len(text) % 4)
    raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
    if _b64encode(raw) != text:
        raise ValueError("non-canonical base64url")
    return raw


def _claims_from_payload(payload: Any) -> BearerClaims | None:
    if not isinstance(payload, dict):
        return None
    for key in _STR_CLAIMS:
        value = payload.get(key)
        if not isinstance(value, str) or not value:
            return None
    for key in _INT_CLAIMS:
        value = payload.get(key)
        if not isinstance(value, int) or isinstance(value, bool):
            return None
    return BearerClaims(**{key: payload[key] for key in _STR_CLAIMS + _INT_CLAIMS})


class BearerTokenSigner:
    """Issue and verify compact ``payload.signature`` download tokens."""

    def __init__(self, secret_key: str) -> None:
        if not secret_key:
            raise ValueError("A non-empty signing secret is required.")
        self._secret = secret_key.encode("utf-8")

    def _signature(self, payload_raw: bytes) -> bytes:
        return hmac.new(self._secret, payload_raw, sha256).digest()

    def sign(self, claims: BearerClaims) -> str:
        payload_raw = canonical_json(claims.to_dict()).encode("utf-8")
        return f"{_b64encode(payload_raw)}.{_b64encode(self._signature(payload_raw))}"

    def verify(self, token: str, *, now: datetime) -> VerifyResult:
        """Check shape, signature and the signature's own expiry claim, in that order."""
        try:
            payload_b64, sig_b64 = token.split(".")
            payload_raw = _b64decode(payload_b64)
            sig = _b64decode(sig_b64)
        except (ValueError, binascii.Error):
            return VerifyResult(False, ErrorKind.MALFORMED)

        if not payload_raw or not sig:
            return VerifyResult(False, ErrorKind.MALFORMED)

        if not hmac.compare_digest(self._signature(payload_raw), sig):
            return VerifyResult(False, ErrorKind.BAD_SIGNATURE)

        try:
            payload = json.loads(payload_raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return VerifyResult(False, ErrorKind.MALFORMED)

        claims = _claims_from_payload(payload)
        if claims is None:
            return VerifyResult(False, ErrorKind.MALFORMED)

        if claims.expires_at <= to_epoch_seconds(now):
            return VerifyResult(False, ErrorKind.EXPIRED, claims=claims)

        return VerifyResult(True, OK, claims=claims)
