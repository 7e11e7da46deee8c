"""Shared fixtures for download gate tests."""

from datetime import datetime, timedelta, timezone

import pytest

from download_gate.catalog import InMemoryCatalog, LocalFileResolver
from download_gate.issuer import TokenIssuer
from download_gate.redeemer import TokenRedeemer
from download_gate.storage import InMemoryTokenStore
from download_gate.token import BearerTokenSigner

SECRET = "unit-secret"


class FixedClock:
    """Settable clock for expiry tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2025, 5, 7, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def catalog() -> InMemoryCatalog:
    return InMemoryCatalog().seed_demo_data()


@pytest.fixture
def store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def signer() -> BearerTokenSigner:
    return BearerTokenSigner(SECRET)


@pytest.fixture
def issuer(store, catalog, signer, clock) -> TokenIssuer:
    return TokenIssuer(store=store, purchases=catalog, signer=signer, clock=clock)


@pytest.fixture
def redeemer(store, catalog, signer, clock, tmp_path) -> TokenRedeemer:
    return TokenRedeemer(store=store, artifacts=LocalFileResolver(catalog, tmp_path), signer=signer, clock=clock)
