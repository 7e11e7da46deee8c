import asyncio
from datetime import timedelta

import pytest

from download_gate.errors import ErrorKind
from download_gate.issuer import TokenIssuer


def test_issue_creates_record_and_signed_token(issuer, store, signer, clock) -> None:
    async def run() -> None:
        result = await issuer.issue("order1", "user1")
        assert result.ok is True
        assert result.reason == "ok"
        assert result.token is not None
        record = result.record
        assert record is not None
        assert await store.get(record.token_id) == record
        assert record.buyer_id == "user1"
        assert record.artifact_id == "prod1"
        assert record.consumed is False
        assert record.created_at == clock.now
        assert record.expires_at == clock.now + timedelta(hours=24)

        verified = signer.verify(result.token, now=clock.now)
        assert verified.valid is True
        assert verified.claims is not None
        assert verified.claims.token_id == record.token_id
        assert verified.claims.expires_at == int(record.expires_at.timestamp())

    asyncio.run(run())


def test_issue_unknown_purchase_creates_nothing(issuer, store) -> None:
    async def run() -> None:
        result = await issuer.issue("order-missing", "user1")
        assert result.ok is False
        assert result.reason == ErrorKind.NOT_FOUND
        assert result.token is None
        assert store.records == {}

    asyncio.run(run())


def test_issue_for_other_buyer_rejected(issuer, store) -> None:
    async def run() -> None:
        result = await issuer.issue("order1", "user2")
        assert result.ok is False
        assert result.reason == ErrorKind.OWNERSHIP_MISMATCH
        assert result.record is None
        assert store.records == {}

    asyncio.run(run())


@pytest.mark.parametrize("purchase_id,buyer_id", [("", "user1"), ("order1", "")])
def test_issue_requires_identifiers(issuer, purchase_id: str, buyer_id: str) -> None:
    with pytest.raises(ValueError):
        asyncio.run(issuer.issue(purchase_id, buyer_id))


def test_reissue_mints_independent_records(issuer, store) -> None:
    async def run() -> None:
        first = await issuer.issue("order1", "user1")
        second = await issuer.issue("order1", "user1")
        assert first.token != second.token
        assert first.record.token_id != second.record.token_id
        records = await store.list_for_purchase("order1")
        assert [r.token_id for r in records] == [first.record.token_id, second.record.token_id]

    asyncio.run(run())


def test_configurable_validity(store, catalog, signer, clock) -> None:
    issuer = TokenIssuer(store=store, purchases=catalog, signer=signer, validity=timedelta(minutes=15), clock=clock)
    result = asyncio.run(issuer.issue("order1", "user1"))
    assert result.record.expires_at - result.record.created_at == timedelta(minutes=15)


def test_non_positive_validity_rejected(store, catalog, signer) -> None:
    with pytest.raises(ValueError):
        TokenIssuer(store=store, purchases=catalog, signer=signer, validity=timedelta(0))


def test_store_failure_propagates(catalog, signer, clock) -> None:
    class BrokenStore:
        async def create(self, record) -> None:
            raise ConnectionError("store unavailable")

    issuer = TokenIssuer(store=BrokenStore(), purchases=catalog, signer=signer, clock=clock)
    with pytest.raises(ConnectionError):
        asyncio.run(issuer.issue("order1", "user1"))
