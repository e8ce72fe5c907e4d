"""Location Resolver — the best-effort chain that turns "where am I" into a confirmable pin.

Invariants:
    - Chain order: IP geolocation (search bias) → GPS fix → reverse geocoding → manual entry
    - Never raises for provider failures: every step ends in a LocationResolution outcome
    - Reverse geocoding of a GPS fix is attempted twice before giving up
    - Autocomplete is skipped for input of MIN_SEARCH_LENGTH characters or fewer

Design Decisions:
    - Device provider optional: server-side callers resolve pins and places only,
      a missing device reads as POSITION_UNAVAILABLE
    - IP bias looked up lazily on the first suggestion without `near`, then cached;
      the API shares one resolver per process (init_location_resolver) so the
      cache outlives a request
"""

import logging
from collections.abc import Mapping
from dataclasses import replace

from address_capture.core.address_validation import is_valid_pincode
from address_capture.core.domain_types import (
    Coordinates, LocationOutcome, LocationResolution, PositionErrorCode,
    ResolvedLocation,
)
from address_capture.core.errors import DeviceLocationError
from address_capture.core.geocoding_parsers import split_formatted_address
from address_capture.core.repository_protocols import (
    DeviceLocationProvider, PlacesProvider,
)

logger = logging.getLogger(__name__)

MIN_SEARCH_LENGTH = 2
REVERSE_GEOCODE_ATTEMPTS = 2

_POSITION_OUTCOMES = {
    PositionErrorCode.PERMISSION_DENIED.value: LocationOutcome.PERMISSION_DENIED,
    PositionErrorCode.POSITION_UNAVAILABLE.value: LocationOutcome.POSITION_UNAVAILABLE,
    PositionErrorCode.TIMEOUT.value: LocationOutcome.TIMEOUT,
}


def _pin(latitude: float, longitude: float, address: str, place_id: str) -> ResolvedLocation:
    place_name, secondary = split_formatted_address(address)
    return ResolvedLocation(
        latitude=latitude,
        longitude=longitude,
        address=address,
        place_name=place_name,
        secondary_address=secondary,
        place_id=place_id,
    )


class LocationResolver:
    """Orchestrates places + device location into LocationResolution outcomes."""

    def __init__(
        self,
        places: PlacesProvider,
        device: DeviceLocationProvider | None = None,
        *,
        high_accuracy: bool = False,
        timeout_ms: int = 30_000,
        maximum_age_ms: int = 60_000,
    ):
        self.places = places
        self.device = device
        self.high_accuracy = high_accuracy
        self.timeout_ms = timeout_ms
        self.maximum_age_ms = maximum_age_ms
        self._search_bias: Coordinates | None = None
        self._bias_looked_up = False

    async def initial_search_bias(self) -> Coordinates | None:
        """Coarse location from the IP address, used to bias autocomplete.

        Looked up once per resolver; a failed lookup leaves suggestions unbiased.
        """
        if not self._bias_looked_up:
            self._bias_looked_up = True
            self._search_bias = await self.places.get_location_from_ip()
        return self._search_bias

    async def suggest_places(
        self, text: str, near: Coordinates | None = None,
    ) -> list[dict]:
        text = (text or "").strip()
        if len(text) <= MIN_SEARCH_LENGTH:
            return []
        return await self.places.get_place_predictions(
            text, near or await self.initial_search_bias(),
        )

    async def _has_permission(self) -> bool:
        try:
            if await self.device.check_permission():
                return True
            return await self.device.request_permission()
        except Exception as e:
            logger.warning(f"Location permission check failed: {e}")
            return False

    async def resolve_current_location(self) -> LocationResolution:
        """GPS fix → reverse geocoding, retried once, → manual entry fallback."""
        if self.device is None:
            return LocationResolution(LocationOutcome.POSITION_UNAVAILABLE)
        if not await self._has_permission():
            return LocationResolution(LocationOutcome.PERMISSION_DENIED)

        try:
            position = await self.device.get_current_position(
                high_accuracy=self.high_accuracy,
                timeout_ms=self.timeout_ms,
                maximum_age_ms=self.maximum_age_ms,
            )
        except DeviceLocationError as e:
            reason = getattr(e.reason, "value", e.reason)
            outcome = _POSITION_OUTCOMES.get(reason, LocationOutcome.LOCATION_ERROR)
            logger.warning(f"Geolocation error: {e.reason}", extra={"outcome": outcome.value})
            return LocationResolution(outcome)

        return await self.resolve_pin(
            position.latitude, position.longitude, attempts=REVERSE_GEOCODE_ATTEMPTS,
        )

    async def resolve_pin(
        self, latitude: float, longitude: float, *, attempts: int = 1,
    ) -> LocationResolution:
        """Reverse geocode a map pin; ADDRESS_NOT_FOUND after `attempts` empty answers."""
        for _ in range(max(attempts, 1)):
            result = await self.places.reverse_geocode(latitude, longitude)
            if result is not None:
                return LocationResolution(
                    LocationOutcome.RESOLVED,
                    _pin(
                        latitude, longitude, result.formatted_address,
                        Coordinates(latitude, longitude).as_query(),
                    ),
                )
        logger.info(
            "Address not found for pin",
            extra={"outcome": LocationOutcome.ADDRESS_NOT_FOUND.value},
        )
        return LocationResolution(LocationOutcome.ADDRESS_NOT_FOUND)

    async def resolve_place(
        self, place_id: str, main_text: str | None = None,
    ) -> LocationResolution:
        """Selected autocomplete prediction → pin with coordinates."""
        details = await self.places.get_place_details(place_id)
        if details is None:
            return LocationResolution(LocationOutcome.PLACE_UNAVAILABLE)
        location = _pin(details.latitude, details.longitude, details.address, place_id)
        if main_text:
            location = replace(location, place_name=main_text)
        return LocationResolution(LocationOutcome.RESOLVED, location)

    async def fill_from_pincode(self, form: Mapping) -> dict:
        """Copy of the manual-entry form with city/state looked up from its pincode.

        Values already typed by the user survive when the lookup comes back blank.
        """
        filled = dict(form)
        pincode = (form.get("pincode") or "").strip()
        if not is_valid_pincode(pincode):
            return filled
        found = await self.places.lookup_pincode(pincode)
        if found is not None:
            filled["city"] = found.city or form.get("city", "")
            filled["state"] = found.state or form.get("state", "")
        return filled


# Singleton (initialized on startup)
location_resolver: LocationResolver | None = None


def init_location_resolver(places: PlacesProvider, **kwargs) -> LocationResolver:
    global location_resolver
    location_resolver = LocationResolver(places, **kwargs)
    return location_resolver
