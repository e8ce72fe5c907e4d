"""Geocoding Payload Parsers — turn provider JSON into domain value objects.

Invariants:
    - Parsers are PURE and total: malformed payloads yield None / [] rather than raising
    - reverse geocoding only succeeds on status == "OK" with at least one result
    - Pincode lookup: city from locality or administrative_area_level_2,
      state from administrative_area_level_1; the last matching component wins

Design Decisions:
    - Kept out of the HTTP client so provider quirks are tested without a transport
"""

from typing import Any

from address_capture.core.domain_types import (
    Coordinates, PlaceDetails, PincodeLocation, ReverseGeocodeResult,
)

CITY_COMPONENT_TYPES = ("locality", "administrative_area_level_2")
STATE_COMPONENT_TYPES = ("administrative_area_level_1",)


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_predictions(data: Any) -> list[dict]:
    if not isinstance(data, dict):
        return []
    predictions = data.get("predictions")
    if not isinstance(predictions, list):
        return []
    return [p for p in predictions if isinstance(p, dict)]


def parse_place_details(data: Any) -> PlaceDetails | None:
    if not isinstance(data, dict) or not isinstance(data.get("result"), dict):
        return None
    result = data["result"]
    try:
        location = result["geometry"]["location"]
        latitude = _as_float(location["lat"])
        longitude = _as_float(location["lng"])
    except (KeyError, TypeError):
        return None
    if latitude is None or longitude is None:
        return None
    return PlaceDetails(
        latitude=latitude,
        longitude=longitude,
        address=result.get("formatted_address") or "",
    )


def _first_ok_result(data: Any) -> dict | None:
    if not isinstance(data, dict) or data.get("status") != "OK":
        return None
    results = data.get("results")
    if not isinstance(results, list) or not results or not isinstance(results[0], dict):
        return None
    return results[0]


def parse_reverse_geocode(data: Any) -> ReverseGeocodeResult | None:
    first = _first_ok_result(data)
    if first is None or not first.get("formatted_address"):
        return None
    return ReverseGeocodeResult(
        formatted_address=first["formatted_address"],
        address_components=list(first.get("address_components") or []),
    )


def parse_pincode_location(data: Any) -> PincodeLocation | None:
    first = _first_ok_result(data)
    if first is None:
        return None
    city, state = "", ""
    for component in first.get("address_components") or []:
        if not isinstance(component, dict):
            continue
        types = component.get("types") or []
        if any(t in types for t in CITY_COMPONENT_TYPES):
            city = component.get("long_name", "")
        if any(t in types for t in STATE_COMPONENT_TYPES):
            state = component.get("long_name", "")
    return PincodeLocation(city=city, state=state)


def parse_ip_location(data: Any) -> Coordinates | None:
    if not isinstance(data, dict):
        return None
    latitude = _as_float(data.get("latitude"))
    longitude = _as_float(data.get("longitude"))
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


def split_formatted_address(address: str) -> tuple[str, str]:
    """'221B, Baker St, London' -> ('221B', 'Baker St, London')."""
    main, _, rest = (address or "").partition(",")
    return main.strip(), rest.strip()
