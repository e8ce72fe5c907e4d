"""Boundary Protocols — what the core needs from storage, geocoding and the device.

Invariants:
    - core/ imports only these Protocols, never infrastructure/ classes
    - KeyValueStore raises on failure; PlacesProvider answers None / [] instead

Design Decisions:
    - typing.Protocol: fakes in tests and real providers match structurally
    - Methods are async because every implementation does IO; the rules in
      core/ stay synchronous and the services await around them
"""

from typing import Protocol

from address_capture.core.domain_types import (
    Coordinates, PlaceDetails, PincodeLocation, ReverseGeocodeResult,
)


class KeyValueStore(Protocol):
    """Contract for string key-value persistence — failures raise."""
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...


class PlacesProvider(Protocol):
    """Contract for the places/geocoding provider — implemented by shell."""
    async def get_place_predictions(
        self, text: str, near: Coordinates | None = None,
    ) -> list[dict]: ...
    async def get_place_details(self, place_id: str) -> PlaceDetails | None: ...
    async def reverse_geocode(
        self, latitude: float, longitude: float,
    ) -> ReverseGeocodeResult | None: ...
    async def lookup_pincode(self, pincode: str) -> PincodeLocation | None: ...
    async def get_location_from_ip(self) -> Coordinates | None: ...


class DeviceLocationProvider(Protocol):
    """Contract for the device's location service.

    get_current_position raises DeviceLocationError (core/errors.py) with a
    PositionErrorCode reason when no fix is available.
    """
    async def check_permission(self) -> bool: ...
    async def request_permission(self) -> bool: ...
    async def get_current_position(
        self,
        *,
        high_accuracy: bool = False,
        timeout_ms: int = 30_000,
        maximum_age_ms: int = 60_000,
    ) -> Coordinates: ...
