"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - AddressId is an opaque string — never parsed or compared numerically
    - Latitude is bounded -90..90, Longitude -180..180
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
    - Value objects (Coordinates, PlaceDetails, ...) are frozen dataclasses: shared
      between the places client, the resolver and the API without copying
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

AddressId = NewType("AddressId", str)
PlaceId = NewType("PlaceId", str)


# ─── Value Types ─────────────────────────────────────────────────

Latitude = NewType("Latitude", float)     # -90.0–90.0
Longitude = NewType("Longitude", float)   # -180.0–180.0

MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0


# ─── Enums ───────────────────────────────────────────────────────

class AddressType(str, Enum):
    """Well-known address tags. Stored addresses may carry any string."""
    HOME = "home"
    OFFICE = "office"
    OTHER = "other"


class PositionErrorCode(str, Enum):
    """Reasons a one-shot GPS read can fail — mirrors the device API codes."""
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"


class LocationOutcome(str, Enum):
    """Result of one step of the location-resolution flow."""
    RESOLVED = "resolved"
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    LOCATION_ERROR = "location_error"
    ADDRESS_NOT_FOUND = "address_not_found"
    PLACE_UNAVAILABLE = "place_unavailable"


OUTCOME_MESSAGES: dict[LocationOutcome, str] = {
    LocationOutcome.RESOLVED: "",
    LocationOutcome.PERMISSION_DENIED: "Location permission denied",
    LocationOutcome.POSITION_UNAVAILABLE: "Location information is unavailable",
    LocationOutcome.TIMEOUT: "Location request timed out. Please try again.",
    LocationOutcome.LOCATION_ERROR: "Error getting location",
    LocationOutcome.ADDRESS_NOT_FOUND: (
        "Unable to fetch address details for your location. "
        "Please try searching for a location instead."
    ),
    LocationOutcome.PLACE_UNAVAILABLE: (
        "Unable to get location details. Please try another location."
    ),
}


# ─── Value Objects ───────────────────────────────────────────────

@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def as_query(self) -> str:
        """Comma-joined form used by the geocoding APIs and as a synthetic place id."""
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True)
class PlaceDetails:
    latitude: float
    longitude: float
    address: str


@dataclass(frozen=True)
class ReverseGeocodeResult:
    formatted_address: str
    address_components: list[dict] = field(default_factory=list)


@dataclass(frozen=True)
class PincodeLocation:
    city: str
    state: str


@dataclass(frozen=True)
class ResolvedLocation:
    """A pin the user can confirm: coordinates plus display text."""
    latitude: float
    longitude: float
    address: str
    place_name: str
    secondary_address: str
    place_id: str


@dataclass(frozen=True)
class LocationResolution:
    """Outcome of a resolution attempt; location is set only when RESOLVED."""
    outcome: LocationOutcome
    location: ResolvedLocation | None = None

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]

    @property
    def requires_manual_entry(self) -> bool:
        """Every non-resolved outcome falls back to search or manual entry."""
        return self.outcome is not LocationOutcome.RESOLVED
