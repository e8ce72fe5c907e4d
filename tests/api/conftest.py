"""API test fixtures — FastAPI app with stores and providers overridden.

Invariants:
    - Every test gets a fresh in-memory address collection
    - No network: the process-wide location resolver is swapped for one on FakePlaces
    - Lifespan is not run (ASGITransport), so every shell dependency is replaced

Design Decisions:
    - get_address_store overridden per request; the resolver singleton is patched
      instead, so tests see the same cross-request IP bias cache as production
"""

import pytest
from httpx import ASGITransport, AsyncClient

from address_capture.api.dependencies import get_address_store
from address_capture.infrastructure.key_locks import KeyLocks
from address_capture.infrastructure.key_value_store import InMemoryKeyValueStore
from address_capture.main import app
from address_capture.services.address_store import AddressStore
from address_capture.services import location_resolver as resolver_module
from address_capture.services.location_resolver import LocationResolver
from tests.fakes import (
    PUNE_DETAILS, PUNE_PINCODE, PUNE_REVERSE, CountingIds, FailingKeyValueStore,
    FakePlaces,
)


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def places():
    return FakePlaces(
        predictions=[{"place_id": "ChIJ1", "description": "FC Road, Pune"}],
        details=PUNE_DETAILS,
        reverse=[PUNE_REVERSE],
        pincode=PUNE_PINCODE,
    )


@pytest.fixture
async def client(kv, places, monkeypatch):
    """FastAPI test client on an in-memory store and a shared resolver over FakePlaces."""
    locks = KeyLocks()
    ids = CountingIds()
    app.dependency_overrides[get_address_store] = lambda: AddressStore(
        kv, locks=locks, id_factory=ids,
    )
    monkeypatch.setattr(resolver_module, "location_resolver", LocationResolver(places))

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def broken_client():
    """Client whose storage cannot be read or written."""
    app.dependency_overrides[get_address_store] = lambda: AddressStore(
        FailingKeyValueStore(fail_get=True, fail_set=True), locks=KeyLocks(),
    )
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
