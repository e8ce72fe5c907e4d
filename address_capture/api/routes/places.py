"""Places & Geocoding — search, place pins, map-pin reverse geocoding, pincode lookup.

Invariants:
    - Provider failures never surface as 5xx: resolution endpoints return an outcome,
      predictions degrade to []
    - Pincode lookup rejects non-6-digit input (400) and reports no match as 404

Design Decisions:
    - /places/predictions declared before /places/{place_id} so it is not captured as an id
"""

import logging

from fastapi import APIRouter, Depends, Query

from address_capture.api.dependencies import get_location_resolver
from address_capture.core.address_validation import is_valid_pincode
from address_capture.core.domain_types import (
    Coordinates, MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE,
)
from address_capture.core.errors import AddressValidationError, ResourceNotFoundError
from address_capture.schemas.location import (
    LocationResolutionResponse, PincodeLocationResponse,
)
from address_capture.services.location_resolver import LocationResolver

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["places"])


@router.get("/places/predictions")
async def place_predictions(
    q: str = Query("", max_length=200),
    lat: float | None = Query(None, ge=MIN_LATITUDE, le=MAX_LATITUDE),
    lng: float | None = Query(None, ge=MIN_LONGITUDE, le=MAX_LONGITUDE),
    resolver: LocationResolver = Depends(get_location_resolver),
):
    """Autocomplete suggestions, biased around (lat, lng) when both are given."""
    near = Coordinates(lat, lng) if lat is not None and lng is not None else None
    return {"predictions": await resolver.suggest_places(q, near)}


@router.get("/places/{place_id}", response_model=LocationResolutionResponse)
async def place_location(
    place_id: str,
    main_text: str | None = Query(None, max_length=200),
    resolver: LocationResolver = Depends(get_location_resolver),
):
    resolution = await resolver.resolve_place(place_id, main_text)
    return LocationResolutionResponse.from_domain(resolution)


@router.get("/geocode/reverse", response_model=LocationResolutionResponse)
async def reverse_geocode_pin(
    lat: float = Query(..., ge=MIN_LATITUDE, le=MAX_LATITUDE),
    lng: float = Query(..., ge=MIN_LONGITUDE, le=MAX_LONGITUDE),
    resolver: LocationResolver = Depends(get_location_resolver),
):
    """Address under a map pin (called when the user stops dragging the map)."""
    resolution = await resolver.resolve_pin(lat, lng)
    return LocationResolutionResponse.from_domain(resolution)


@router.get("/geocode/pincode/{pincode}", response_model=PincodeLocationResponse)
async def pincode_location(
    pincode: str, resolver: LocationResolver = Depends(get_location_resolver),
):
    """City and state for a 6-digit pincode (fills the manual address form)."""
    if not is_valid_pincode(pincode):
        raise AddressValidationError(
            "Invalid pincode", {"pincode": "Enter a valid 6-digit pincode"},
        )
    filled = await resolver.fill_from_pincode({"pincode": pincode})
    if not filled.get("city") and not filled.get("state"):
        raise ResourceNotFoundError("Pincode", pincode)
    return PincodeLocationResponse(
        pincode=pincode, city=filled.get("city", ""), state=filled.get("state", ""),
    )
