"""SQL Key-Value Store tests — kv_entries table on in-memory SQLite.

Invariants:
    - Missing key reads as None
    - set() upserts: second write replaces the value, never adds a row
    - AddressStore works unchanged on top of the SQL provider
    - Database failures raise DatabaseError; AddressStore reports them as StorageError
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from address_capture.core.errors import DatabaseError, StorageError
from address_capture.db.base import Base
from address_capture.infrastructure.database import DatabaseSessionManager
from address_capture.infrastructure.key_locks import KeyLocks
from address_capture.infrastructure.key_value_store import SqlKeyValueStore
from address_capture.models.kv_entry import KeyValueEntry
from address_capture.services.address_store import AddressStore


@pytest.fixture
async def manager():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    fake = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake.engine = engine
    fake._session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
    yield fake
    await engine.dispose()


async def _row_count(manager) -> int:
    async with manager.session() as db:
        return (await db.execute(select(func.count()).select_from(KeyValueEntry))).scalar_one()


async def test_missing_key_is_none(manager):
    assert await SqlKeyValueStore(manager).get("@user_addresses") is None


async def test_set_then_get(manager):
    kv = SqlKeyValueStore(manager)
    await kv.set("@user_addresses", "[]")
    assert await kv.get("@user_addresses") == "[]"


async def test_set_replaces_value_in_place(manager):
    kv = SqlKeyValueStore(manager)
    await kv.set("@user_addresses", "[]")
    await kv.set("@user_addresses", '[{"id": "a"}]')
    assert await kv.get("@user_addresses") == '[{"id": "a"}]'
    assert await _row_count(manager) == 1


async def test_keys_are_independent(manager):
    kv = SqlKeyValueStore(manager)
    await kv.set("a", "1")
    await kv.set("b", "2")
    assert (await kv.get("a"), await kv.get("b")) == ("1", "2")


async def test_address_store_on_sql_backend(manager):
    store = AddressStore(SqlKeyValueStore(manager), locks=KeyLocks())
    saved = await store.save({"city": "Pune", "isDefault": True})
    assert await store.get_all() == [saved]
    assert (await store.get_default())["id"] == saved["id"]


async def test_missing_table_surfaces_as_storage_error(manager):
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    store = AddressStore(SqlKeyValueStore(manager), locks=KeyLocks())

    with pytest.raises(DatabaseError):
        await SqlKeyValueStore(manager).get("@user_addresses")
    with pytest.raises(StorageError) as exc:
        await store.save({"city": "Pune"})
    assert exc.value.operation == "read"
    assert await store.get_all() == []
