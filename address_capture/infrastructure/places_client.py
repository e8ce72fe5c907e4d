"""Resilient Places Client — Google Places / Geocoding and IP geolocation over httpx.

Invariants:
    - Every lookup is best-effort: transport errors, non-2xx responses and malformed
      payloads are logged and return the absence signal (None or [])
    - Pincode lookups only go out for 6-character input, restricted to one country
    - Predictions are biased to a 50km radius around `near` when given
    - The API key never appears in log lines

Design Decisions:
    - Wrapper over raw httpx: the resolver and routes never see HTTP concerns
    - Shared AsyncClient injected or created per instance; owner closes it via aclose()
    - No retries here: the capture flow's fallback chain is the retry policy
"""

import logging
from typing import Any

import httpx

from address_capture.core.address_validation import PINCODE_LENGTH
from address_capture.core.domain_types import (
    Coordinates, PlaceDetails, PincodeLocation, ReverseGeocodeResult,
)
from address_capture.core.geocoding_parsers import (
    parse_ip_location, parse_pincode_location, parse_place_details,
    parse_predictions, parse_reverse_geocode,
)

logger = logging.getLogger(__name__)


class PlacesClient:
    """Implements core PlacesProvider against the Google Maps web services."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        ip_geolocation_url: str = "https://ipapi.co/json/",
        timeout_seconds: float = 10.0,
        search_radius_m: int = 50_000,
        pincode_country: str = "IN",
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.ip_geolocation_url = ip_geolocation_url
        self.search_radius_m = search_radius_m
        self.pincode_country = pincode_country
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def _get_json(self, what: str, url: str, params: dict | None = None) -> Any:
        """GET and decode JSON; None on any failure."""
        try:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"{what} failed with HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"{what} request error: {e.__class__.__name__}")
        except ValueError:
            logger.error(f"{what} returned a non-JSON body")
        return None

    async def get_place_predictions(
        self, text: str, near: Coordinates | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {"input": text, "key": self.api_key}
        if near is not None:
            params["location"] = near.as_query()
            params["radius"] = self.search_radius_m
        data = await self._get_json(
            "Place autocomplete", f"{self.base_url}/place/autocomplete/json", params,
        )
        return parse_predictions(data)

    async def get_place_details(self, place_id: str) -> PlaceDetails | None:
        data = await self._get_json(
            "Place details",
            f"{self.base_url}/place/details/json",
            {
                "place_id": place_id,
                "fields": "geometry,formatted_address",
                "key": self.api_key,
            },
        )
        return parse_place_details(data)

    async def reverse_geocode(
        self, latitude: float, longitude: float,
    ) -> ReverseGeocodeResult | None:
        data = await self._get_json(
            "Reverse geocoding",
            f"{self.base_url}/geocode/json",
            {"latlng": f"{latitude},{longitude}", "key": self.api_key},
        )
        result = parse_reverse_geocode(data)
        if result is None:
            logger.info(f"No address found for {latitude},{longitude}")
        return result

    async def lookup_pincode(self, pincode: str) -> PincodeLocation | None:
        """City and state for a postal code; None for non-6-character input."""
        if len(pincode) != PINCODE_LENGTH:
            return None
        data = await self._get_json(
            "Pincode lookup",
            f"{self.base_url}/geocode/json",
            {
                "address": pincode,
                "components": f"country:{self.pincode_country}",
                "key": self.api_key,
            },
        )
        return parse_pincode_location(data)

    async def get_location_from_ip(self) -> Coordinates | None:
        data = await self._get_json("IP geolocation", self.ip_geolocation_url)
        return parse_ip_location(data)


# Singleton (initialized on startup)
places_client: PlacesClient | None = None


def init_places_client(**kwargs) -> PlacesClient:
    global places_client
    places_client = PlacesClient(**kwargs)
    return places_client


async def close_places_client() -> None:
    global places_client
    if places_client is not None:
        await places_client.aclose()
        places_client = None


def get_places_client() -> PlacesClient:
    """FastAPI dependency for the initialized places client."""
    if not places_client:
        raise RuntimeError("Places client not initialized")
    return places_client
