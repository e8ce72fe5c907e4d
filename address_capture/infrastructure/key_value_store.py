"""Key-Value Persistence Providers — implementations of core KeyValueStore.

Invariants:
    - get() returns None for a missing key, never an empty string placeholder
    - set() replaces the whole value for the key in one write
    - Failures raise (DatabaseError from the SQL backend); callers decide fail-soft vs fail-loud

Design Decisions:
    - InMemoryKeyValueStore for tests and single-process demos (state lost on restart)
    - SqlKeyValueStore reuses DatabaseSessionManager: rollback and error mapping come for free
"""

import logging

from sqlalchemy import select

from address_capture.infrastructure.database import DatabaseSessionManager
from address_capture.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Dict-backed provider."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SqlKeyValueStore:
    """kv_entries-table provider on the async SQLAlchemy engine."""

    def __init__(self, manager: DatabaseSessionManager):
        self._manager = manager

    async def get(self, key: str) -> str | None:
        async with self._manager.session() as db:
            result = await db.execute(
                select(KeyValueEntry.value).where(KeyValueEntry.key == key),
            )
            return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        async with self._manager.session() as db:
            entry = await db.get(KeyValueEntry, key)
            if entry is None:
                db.add(KeyValueEntry(key=key, value=value))
            else:
                entry.value = value
            await db.commit()
        logger.debug("Stored value", extra={"storage_key": key})
