"""Bearer token signing and verification."""

from .signer import BearerTokenSigner, token_fingerprint
from .types import VerifyResult

__all__ = ["BearerTokenSigner", "VerifyResult", "token_fingerprint"]
