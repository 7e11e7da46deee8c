"""Utility helpers for hashing and time operations."""

from .hashing import canonical_json, sha256_hex
from .time import Clock, to_epoch_seconds, utc_now

__all__ = ["canonical_json", "sha256_hex", "Clock", "utc_now", "to_epoch_seconds"]
