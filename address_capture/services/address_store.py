"""Address Store — durable CRUD over the saved-address collection with a single default.

Invariants:
    - The whole collection lives under ONE storage key as a JSON array (camelCase records)
    - This store is the only writer of that key; every write is the full collection
    - After any successful write at most one record has isDefault == True
    - Mutations run load → address_rules → store under the key's lock (no lost updates)
    - Writes fail loudly (StorageError); get_all/get_by_type fail soft (empty list)
    - Unknown ids in save/set_default/get raise AddressNotFoundError before any write;
      delete of an unknown id is a no-op

Design Decisions:
    - Impureim sandwich: IO here, rules in core/address_rules.py
    - Mutations read with load() (strict), not get_all(): a failed read must not be
      mistaken for an empty collection and then written back over real data
    - Clock and id factory injectable for deterministic tests
"""

import json
import logging
import secrets
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone

from address_capture.core import address_rules
from address_capture.core.errors import (
    AddressCaptureError, AddressNotFoundError, StorageError,
)
from address_capture.core.repository_protocols import KeyValueStore
from address_capture.infrastructure.key_locks import KeyLocks, key_locks
from address_capture.schemas.address import AddressRecord, normalize_address

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "@user_addresses"


def generate_address_id() -> str:
    """Millisecond clock plus 32 random bits — sortable by creation, collision-free in practice."""
    return f"{time.time_ns() // 1_000_000}{secrets.token_hex(4)}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AddressStore:
    """Owns the address collection stored under one key of a KeyValueStore."""

    def __init__(
        self,
        kv: KeyValueStore,
        key: str = DEFAULT_STORAGE_KEY,
        *,
        locks: KeyLocks | None = None,
        clock: Callable[[], datetime] = _utc_now,
        id_factory: Callable[[], str] = generate_address_id,
    ):
        self._kv = kv
        self.key = key
        self._locks = locks or key_locks
        self._clock = clock
        self._id_factory = id_factory

    # ─── Reads ──────────────────────────────────────────────────

    async def load(self) -> list[dict]:
        """Full collection; raises StorageError when storage is unreadable or corrupt."""
        try:
            raw = await self._kv.get(self.key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(str(e), "read", self.key) from e
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageError("stored payload is not valid JSON", "parse", self.key) from e
        if not isinstance(data, list):
            raise StorageError("stored payload is not a list", "parse", self.key)

        addresses = []
        for item in data:
            if not isinstance(item, dict):
                logger.warning(
                    "Skipping non-object entry in address collection",
                    extra={"storage_key": self.key},
                )
                continue
            if item.get("id") is not None:
                item["id"] = str(item["id"])
            addresses.append(item)
        return addresses

    async def get_all(self) -> list[dict]:
        """Full collection, most recently created first; [] when storage fails."""
        try:
            return await self.load()
        except StorageError as e:
            logger.error(
                f"Error getting addresses: {e.message}",
                extra={"storage_key": self.key, "error_code": e.code},
            )
            return []

    async def get_by_type(self, address_type: str) -> list[dict]:
        return address_rules.filter_by_type(await self.get_all(), address_type)

    async def get(self, address_id: str) -> dict:
        record = address_rules.find_address(await self.load(), address_id)
        if record is None:
            raise AddressNotFoundError(str(address_id))
        return record

    async def get_default(self) -> dict | None:
        return address_rules.find_default(await self.get_all())

    # ─── Writes ─────────────────────────────────────────────────

    async def _store(self, addresses: list[dict], operation: str) -> None:
        try:
            payload = json.dumps(addresses, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise StorageError(f"cannot serialize collection: {e}", operation, self.key) from e
        try:
            await self._kv.set(self.key, payload)
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                f"Error writing addresses ({operation}): {e}",
                extra={"storage_key": self.key, "operation": operation},
            )
            raise StorageError(str(e), operation, self.key) from e

    async def save(self, address_data: Mapping | AddressRecord) -> dict:
        """Create (no id) or fully replace (existing id) one address.

        Returns the normalized persisted record. isDefault=True clears the flag
        on every other record in the same write.
        """
        incoming = normalize_address(address_data)
        async with self._locks.for_key(self.key):
            addresses = await self.load()
            updated, record = address_rules.apply_save(
                addresses, incoming, now=self._clock(), new_id=self._new_id(addresses),
            )
            await self._store(updated, "save")
        logger.info(
            "Address saved",
            extra={
                "address_id": record["id"], "storage_key": self.key,
                "address_count": len(updated),
            },
        )
        return record

    async def set_default(self, address_id: str) -> dict:
        """Make one address the default and clear the flag everywhere else."""
        async with self._locks.for_key(self.key):
            addresses = await self.load()
            updated, record = address_rules.apply_set_default(addresses, address_id)
            await self._store(updated, "set_default")
        logger.info(
            "Default address changed",
            extra={"address_id": record["id"], "storage_key": self.key},
        )
        return record

    async def delete(self, address_id: str) -> list[dict]:
        """Remove one address and return the remaining collection.

        Deleting the default leaves no default; nothing is promoted.
        """
        async with self._locks.for_key(self.key):
            addresses = await self.load()
            updated = address_rules.apply_delete(addresses, address_id)
            if len(updated) == len(addresses):
                logger.info(
                    "Delete of unknown address ignored",
                    extra={"address_id": str(address_id), "storage_key": self.key},
                )
                return updated
            await self._store(updated, "delete")
        logger.info(
            "Address deleted",
            extra={
                "address_id": str(address_id), "storage_key": self.key,
                "address_count": len(updated),
            },
        )
        return updated

    def _new_id(self, addresses: list[dict]) -> str:
        taken = {str(r.get("id")) for r in addresses}
        new_id = self._id_factory()
        while new_id in taken:
            new_id = self._id_factory()
        return new_id


async def storage_is_reachable(store: AddressStore) -> bool:
    """Readiness check: the key can be read (an empty key counts as reachable)."""
    try:
        await store.load()
        return True
    except AddressCaptureError:
        return False
