"""Address Store tests — persistence, single default, fail-soft reads, fail-loud writes.

Invariants:
    - At most one record has isDefault == True after any write
    - Ids are unique and never change on update
    - Round-trip: save then get_all returns exactly what save returned
    - Storage read failures → [] from get_all, StorageError from mutations
    - Concurrent saves on one key lose no records
"""

import asyncio
import json

import pytest

from address_capture.core.errors import (
    AddressNotFoundError, AddressValidationError, StorageError,
)
from address_capture.core.timestamps import parse_timestamp
from address_capture.infrastructure.key_locks import KeyLocks
from address_capture.infrastructure.key_value_store import InMemoryKeyValueStore
from address_capture.services.address_store import (
    DEFAULT_STORAGE_KEY, AddressStore, generate_address_id, storage_is_reachable,
)
from tests.fakes import CountingIds, FailingKeyValueStore, SteppingClock

HOME = {
    "addressType": "home",
    "receiverName": "Asha",
    "receiverPhone": "9876543210",
    "houseNo": "12B",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411005",
}


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return AddressStore(kv, clock=SteppingClock(), id_factory=CountingIds(), locks=KeyLocks())


def _stored(kv, key=DEFAULT_STORAGE_KEY):
    return json.loads(kv._data[key])


# -- Reads on empty / missing storage -----------------------------------------

async def test_get_all_on_empty_storage(store):
    assert await store.get_all() == []
    assert await store.get_default() is None


async def test_get_by_type_filters(store):
    await store.save(HOME)
    await store.save({**HOME, "addressType": "office"})
    homes = await store.get_by_type("home")
    assert [a["addressType"] for a in homes] == ["home"]
    assert await store.get_by_type("gym") == []


# -- save: create --------------------------------------------------------------

async def test_first_save_becomes_default_when_requested(store, kv):
    saved = await store.save({**HOME, "isDefault": True})
    assert saved["id"] == "addr-1"
    assert saved["isDefault"] is True
    assert _stored(kv) == [saved]


async def test_new_addresses_are_prepended(store):
    first = await store.save(HOME)
    second = await store.save({**HOME, "addressType": "office"})
    assert [a["id"] for a in await store.get_all()] == [second["id"], first["id"]]


async def test_new_default_clears_previous_default(store):
    a = await store.save({**HOME, "isDefault": True})
    b = await store.save({**HOME, "isDefault": True, "addressType": "office"})
    addresses = await store.get_all()
    defaults = [x["id"] for x in addresses if x["isDefault"]]
    assert defaults == [b["id"]]
    assert (await store.get(a["id"]))["isDefault"] is False


async def test_round_trip_returns_exactly_what_was_saved(store):
    saved = await store.save({**HOME, "deliveryNotes": "Leave at gate"})
    assert await store.get_all() == [saved]
    assert saved["deliveryNotes"] == "Leave at gate"


async def test_saved_record_has_timestamps(store):
    saved = await store.save(HOME)
    assert saved["createdAt"] == "2024-05-01T10:00:00.000Z"
    assert saved["updatedAt"] == saved["createdAt"]


async def test_invalid_data_rejected_before_write(store, kv):
    with pytest.raises(AddressValidationError):
        await store.save({**HOME, "latitude": 500})
    assert DEFAULT_STORAGE_KEY not in kv._data


async def test_colliding_id_factory_retries():
    ids = iter(["dup", "dup", "fresh"])
    store = AddressStore(InMemoryKeyValueStore(), id_factory=lambda: next(ids), locks=KeyLocks())
    await store.save(HOME)
    second = await store.save(HOME)
    assert second["id"] == "fresh"


def test_generated_ids_are_unique():
    assert len({generate_address_id() for _ in range(500)}) == 500


# -- save: update --------------------------------------------------------------

async def test_update_preserves_identity_and_advances_updated_at(store):
    created = await store.save(HOME)
    updated = await store.save({**created, "landmark": "Opp. temple"})
    assert updated["id"] == created["id"]
    assert updated["createdAt"] == created["createdAt"]
    assert parse_timestamp(updated["updatedAt"]) > parse_timestamp(created["updatedAt"])
    assert len(await store.get_all()) == 1


async def test_update_keeps_position(store):
    a = await store.save(HOME)
    b = await store.save(HOME)
    await store.save({**a, "city": "Mumbai"})
    assert [x["id"] for x in await store.get_all()] == [b["id"], a["id"]]


async def test_update_unknown_id_raises_and_writes_nothing(kv, store):
    await store.save(HOME)
    before = kv._data[DEFAULT_STORAGE_KEY]
    with pytest.raises(AddressNotFoundError):
        await store.save({**HOME, "id": "ghost"})
    assert kv._data[DEFAULT_STORAGE_KEY] == before


# -- set_default ---------------------------------------------------------------

async def test_set_default_moves_flag(store):
    a = await store.save({**HOME, "isDefault": True})
    b = await store.save(HOME)
    promoted = await store.set_default(b["id"])
    assert promoted["id"] == b["id"]
    assert (await store.get_default())["id"] == b["id"]
    assert (await store.get(a["id"]))["isDefault"] is False


async def test_set_default_twice_is_idempotent(store, kv):
    a = await store.save(HOME)
    await store.set_default(a["id"])
    first = kv._data[DEFAULT_STORAGE_KEY]
    await store.set_default(a["id"])
    assert kv._data[DEFAULT_STORAGE_KEY] == first


async def test_set_default_unknown_id(store):
    with pytest.raises(AddressNotFoundError):
        await store.set_default("nope")


# -- delete --------------------------------------------------------------------

async def test_delete_returns_remaining(store):
    a = await store.save(HOME)
    b = await store.save(HOME)
    remaining = await store.delete(a["id"])
    assert [x["id"] for x in remaining] == [b["id"]]
    assert await store.get_all() == remaining


async def test_delete_default_leaves_no_default(store):
    a = await store.save({**HOME, "isDefault": True})
    await store.save(HOME)
    await store.delete(a["id"])
    assert await store.get_default() is None


async def test_delete_unknown_id_skips_write():
    kv = FailingKeyValueStore()
    store = AddressStore(kv, id_factory=CountingIds(), locks=KeyLocks())
    await store.save(HOME)
    remaining = await store.delete("nope")
    assert len(remaining) == 1
    assert kv.set_calls == 1


async def test_get_unknown_id(store):
    with pytest.raises(AddressNotFoundError):
        await store.get("nope")


# -- Legacy / corrupt payloads -------------------------------------------------

async def test_legacy_numeric_ids_are_strings():
    payload = json.dumps([{"id": 1714557600000, "city": "Pune", "isDefault": True}])
    store = AddressStore(InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: payload}), locks=KeyLocks())
    addresses = await store.get_all()
    assert addresses[0]["id"] == "1714557600000"
    assert (await store.set_default("1714557600000"))["id"] == "1714557600000"


async def test_non_object_entries_skipped():
    payload = json.dumps([{"id": "a"}, 42, "junk"])
    store = AddressStore(InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: payload}), locks=KeyLocks())
    assert await store.get_all() == [{"id": "a"}]


async def test_corrupt_payload_reads_empty_but_blocks_writes():
    kv = InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: "{not json"})
    store = AddressStore(kv, locks=KeyLocks())
    assert await store.get_all() == []
    with pytest.raises(StorageError) as exc:
        await store.save(HOME)
    assert exc.value.operation == "parse"
    assert kv._data[DEFAULT_STORAGE_KEY] == "{not json"


async def test_non_list_payload_is_corrupt():
    store = AddressStore(
        InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: '{"id": "a"}'}), locks=KeyLocks(),
    )
    with pytest.raises(StorageError):
        await store.load()


# -- Storage failures ----------------------------------------------------------

async def test_read_failure_is_fail_soft_for_queries():
    store = AddressStore(FailingKeyValueStore(fail_get=True), locks=KeyLocks())
    assert await store.get_all() == []
    assert await store.get_by_type("home") == []
    assert await store.get_default() is None


async def test_read_failure_blocks_mutation():
    kv = FailingKeyValueStore(fail_get=True)
    store = AddressStore(kv, locks=KeyLocks())
    with pytest.raises(StorageError) as exc:
        await store.save(HOME)
    assert exc.value.operation == "read"
    assert kv.set_calls == 0


async def test_write_failure_raises_storage_error():
    store = AddressStore(FailingKeyValueStore(fail_set=True), locks=KeyLocks())
    with pytest.raises(StorageError) as exc:
        await store.save(HOME)
    assert exc.value.operation == "save"
    assert exc.value.storage_key == DEFAULT_STORAGE_KEY
    assert exc.value.http_status == 503


async def test_storage_is_reachable(store):
    assert await storage_is_reachable(store) is True
    broken = AddressStore(FailingKeyValueStore(fail_get=True), locks=KeyLocks())
    assert await storage_is_reachable(broken) is False


# -- Keys and concurrency ------------------------------------------------------

async def test_custom_key_isolates_collections(kv):
    locks = KeyLocks()
    mine = AddressStore(kv, "@user_addresses:alice", locks=locks)
    theirs = AddressStore(kv, "@user_addresses:bob", locks=locks)
    await mine.save(HOME)
    assert await theirs.get_all() == []
    assert len(await mine.get_all()) == 1


class _SlowKeyValueStore(InMemoryKeyValueStore):
    """Yields between read and write so unsynchronized writers would interleave."""

    async def get(self, key):
        value = await super().get(key)
        await asyncio.sleep(0)
        return value


async def test_concurrent_saves_lose_nothing():
    locks = KeyLocks()
    kv = _SlowKeyValueStore()
    stores = [AddressStore(kv, locks=locks) for _ in range(10)]
    await asyncio.gather(*(s.save({**HOME, "houseNo": str(i)}) for i, s in enumerate(stores)))
    addresses = await stores[0].get_all()
    assert sorted(a["houseNo"] for a in addresses) == sorted(str(i) for i in range(10))
    assert len({a["id"] for a in addresses}) == 10


async def test_concurrent_default_changes_keep_single_default():
    locks = KeyLocks()
    store = AddressStore(_SlowKeyValueStore(), id_factory=CountingIds(), locks=locks)
    saved = [await store.save(HOME) for _ in range(5)]
    await asyncio.gather(*(store.set_default(a["id"]) for a in saved))
    addresses = await store.get_all()
    assert sum(1 for a in addresses if a["isDefault"]) == 1


async def test_update_ignores_unparseable_stored_updated_at():
    payload = json.dumps([{
        "id": "1", "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "01/02/2024",
    }])
    kv = InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: payload})
    store = AddressStore(kv, clock=SteppingClock(), locks=KeyLocks())

    updated = await store.save({"id": "1", "city": "Pune"})

    assert updated["updatedAt"] == "2024-05-01T10:00:00.000Z"
    assert _stored(kv) == [updated]


async def test_update_ignores_non_string_stored_updated_at():
    payload = json.dumps([{"id": "1", "updatedAt": 1714557600000}])
    store = AddressStore(
        InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: payload}),
        clock=SteppingClock(), locks=KeyLocks(),
    )
    updated = await store.save({"id": "1", "city": "Pune"})
    assert updated["updatedAt"] == "2024-05-01T10:00:00.000Z"


async def test_next_write_repairs_duplicate_defaults():
    payload = json.dumps([
        {"id": "b", "isDefault": True},
        {"id": "a", "isDefault": True},
    ])
    kv = InMemoryKeyValueStore({DEFAULT_STORAGE_KEY: payload})
    store = AddressStore(kv, id_factory=CountingIds(), locks=KeyLocks())

    await store.save({**HOME, "isDefault": False})

    flags = {a["id"]: a["isDefault"] for a in _stored(kv)}
    assert flags == {"addr-1": False, "b": True, "a": False}
