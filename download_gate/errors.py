"""Rejection kinds and exceptions for the download token lifecycle."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Terminal rejection reasons reported by issuance and redemption."""

    NOT_FOUND = "not_found"
    OWNERSHIP_MISMATCH = "ownership_mismatch"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    ALREADY_USED = "already_used"


OK = "ok"


class DownloadGateError(Exception):
    """Base class for download-gate failures outside the rejection taxonomy."""


class DuplicateTokenError(DownloadGateError):
    """Raised when a store already holds a record with the same token id."""

    def __init__(self, token_id: str) -> None:
        super().__init__(f"Token record '{token_id}' already exists.")
        self.token_id = token_id


class ConfigurationError(DownloadGateError):
    """Raised when required settings are missing or invalid."""
