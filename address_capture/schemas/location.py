"""Location Schemas — API shapes for resolution outcomes and pincode lookups.

Invariants:
    - location is null unless outcome == "resolved"
    - message is the user-facing text for the outcome ("" when resolved)
"""

from pydantic import BaseModel

from address_capture.core.domain_types import LocationResolution


class ResolvedLocationResponse(BaseModel):
    latitude: float
    longitude: float
    address: str
    place_name: str
    secondary_address: str
    place_id: str


class LocationResolutionResponse(BaseModel):
    outcome: str
    message: str
    requires_manual_entry: bool
    location: ResolvedLocationResponse | None = None

    @classmethod
    def from_domain(cls, resolution: LocationResolution) -> "LocationResolutionResponse":
        location = None
        if resolution.location is not None:
            loc = resolution.location
            location = ResolvedLocationResponse(
                latitude=loc.latitude,
                longitude=loc.longitude,
                address=loc.address,
                place_name=loc.place_name,
                secondary_address=loc.secondary_address,
                place_id=loc.place_id,
            )
        return cls(
            outcome=resolution.outcome.value,
            message=resolution.message,
            requires_manual_entry=resolution.requires_manual_entry,
            location=location,
        )


class PincodeLocationResponse(BaseModel):
    pincode: str
    city: str
    state: str
