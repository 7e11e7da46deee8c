"""Bearer token verification datatypes."""

from __future__ import annotations

from dataclasses import dataclass

from ..models import BearerClaims


@dataclass(frozen=True)
class VerifyResult:
    valid: bool
    reason: str
    claims: BearerClaims | None = None
