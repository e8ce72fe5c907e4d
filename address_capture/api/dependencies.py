"""Route Dependencies — wiring of stores and clients for FastAPI's Depends.

Invariants:
    - One AddressStore per request, all sharing the process-wide key locks
    - One LocationResolver per process (built in the lifespan), so its IP search
      bias is looked up once, not on every request
    - Tests override these via app.dependency_overrides, never by patching routes
"""

from fastapi import Depends

from address_capture.config import Settings, get_settings
from address_capture.infrastructure.database import DatabaseSessionManager, get_db_manager
from address_capture.infrastructure.key_value_store import SqlKeyValueStore
from address_capture.services import location_resolver as resolver_module
from address_capture.services.address_store import AddressStore
from address_capture.services.location_resolver import LocationResolver


def get_address_store(
    settings: Settings = Depends(get_settings),
    manager: DatabaseSessionManager = Depends(get_db_manager),
) -> AddressStore:
    return AddressStore(SqlKeyValueStore(manager), settings.address_storage_key)


def get_location_resolver() -> LocationResolver:
    if resolver_module.location_resolver is None:
        raise RuntimeError("Location resolver not initialized")
    return resolver_module.location_resolver
