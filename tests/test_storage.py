import asyncio
import threading
from datetime import datetime, timedelta, timezone

import pytest

from download_gate.errors import DuplicateTokenError
from download_gate.models import TokenRecord
from download_gate.storage import InMemoryTokenStore, create_store_from_env

CREATED = datetime(2025, 5, 7, 9, 0, tzinfo=timezone.utc)


def make_record(token_id: str = "t1", purchase_id: str = "order1", offset_minutes: int = 0) -> TokenRecord:
    created = CREATED + timedelta(minutes=offset_minutes)
    return TokenRecord(
        token_id=token_id,
        purchase_id=purchase_id,
        buyer_id="user1",
        artifact_id="prod1",
        created_at=created,
        expires_at=created + timedelta(hours=24),
    )


def test_record_invariants() -> None:
    with pytest.raises(ValueError):
        TokenRecord(
            token_id="t1",
            purchase_id="order1",
            buyer_id="user1",
            artifact_id="prod1",
            created_at=CREATED,
            expires_at=CREATED,
        )
    with pytest.raises(ValueError):
        TokenRecord(
            token_id="t1",
            purchase_id="order1",
            buyer_id="user1",
            artifact_id="prod1",
            created_at=CREATED,
            expires_at=CREATED + timedelta(hours=1),
            consumed=True,
        )


def test_consumed_record_cannot_be_consumed_again() -> None:
    consumed = make_record().consume(consumed_at=CREATED, consumed_from=None)
    assert consumed.consumed is True
    with pytest.raises(ValueError):
        consumed.consume(consumed_at=CREATED, consumed_from=None)


def test_duplicate_create_rejected() -> None:
    async def run() -> None:
        store = InMemoryTokenStore()
        await store.create(make_record())
        with pytest.raises(DuplicateTokenError):
            await store.create(make_record())

    asyncio.run(run())


def test_try_consume_is_compare_and_set() -> None:
    async def run() -> None:
        store = InMemoryTokenStore()
        await store.create(make_record())
        when = CREATED + timedelta(minutes=1)

        won = await store.try_consume("t1", consumed_at=when, consumed_from="10.0.0.1")
        lost = await store.try_consume("t1", consumed_at=when + timedelta(seconds=1), consumed_from="10.0.0.2")
        missing = await store.try_consume("nope", consumed_at=when, consumed_from=None)

        assert won is not None and won.consumed_from == "10.0.0.1"
        assert lost is None
        assert missing is None
        stored = await store.get("t1")
        assert stored.consumed_at == when
        assert stored.consumed_from == "10.0.0.1"

    asyncio.run(run())


def test_list_for_purchase_oldest_first() -> None:
    async def run() -> None:
        store = InMemoryTokenStore()
        await store.create(make_record("t2", offset_minutes=5))
        await store.create(make_record("t1", offset_minutes=0))
        await store.create(make_record("t3", purchase_id="order2"))
        records = await store.list_for_purchase("order1")
        assert [r.token_id for r in records] == ["t1", "t2"]
        assert await store.list_for_purchase("order9") == []

    asyncio.run(run())


def test_create_store_from_env(monkeypatch) -> None:
    monkeypatch.delenv("DOWNLOAD_GATE_PG_DSN", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert isinstance(create_store_from_env(), InMemoryTokenStore)

    monkeypatch.setenv("DOWNLOAD_GATE_PG_DSN", "postgresql://localhost/downloads")
    store = create_store_from_env()
    assert type(store).__name__ == "PostgresTokenStore"


def test_list_for_purchase_while_other_thread_creates() -> None:
    store = InMemoryTokenStore()
    for i in range(200):
        asyncio.run(store.create(make_record(f"seed-{i}", offset_minutes=i)))

    def writer() -> None:
        async def fill() -> None:
            for i in range(2000):
                await store.create(make_record(f"w-{i}", purchase_id="order2", offset_minutes=i))

        asyncio.run(fill())

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        while thread.is_alive():
            records = asyncio.run(store.list_for_purchase("order1"))
            assert len(records) == 200
    finally:
        thread.join()
    assert len(asyncio.run(store.list_for_purchase("order2"))) == 2000


def test_postgres_pool_created_once_under_concurrent_connect(monkeypatch) -> None:
    from download_gate.storage import postgres

    created = []

    async def fake_create_pool(**kwargs):
        await asyncio.sleep(0.01)
        pool = object()
        created.append(pool)
        return pool

    monkeypatch.setattr(postgres.asyncpg, "create_pool", fake_create_pool)

    async def run() -> None:
        store = postgres.PostgresTokenStore("postgresql://localhost/downloads")
        await asyncio.gather(*(store.connect() for _ in range(5)))
        assert len(created) == 1
        assert store._pool is created[0]

    asyncio.run(run())
