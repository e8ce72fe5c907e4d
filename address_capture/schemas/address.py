"""Address Schema — explicit shape of a saved address, validated before every write.

Invariants:
    - id is coerced to str (legacy records carry numeric ids)
    - createdAt/updatedAt, when present, parse as ISO-8601
    - latitude in -90..90, longitude in -180..180
    - Unknown fields are preserved (extra="allow") — callers may attach their own metadata

Design Decisions:
    - alias_generator=to_camel + populate_by_name: persisted layout stays camelCase
      while Python callers may pass snake_case
    - to_record() drops None values so absent fields stay absent in storage
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from address_capture.core.domain_types import (
    MAX_LATITUDE, MAX_LONGITUDE, MIN_LATITUDE, MIN_LONGITUDE,
)
from address_capture.core.errors import AddressValidationError
from address_capture.core.timestamps import parse_timestamp


class AddressRecord(BaseModel):
    """A saved delivery address as persisted in the collection."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        str_strip_whitespace=True,
    )

    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    address_type: str | None = None
    is_default: bool = False

    receiver_name: str | None = Field(None, max_length=200)
    receiver_phone: str | None = Field(None, max_length=20)
    house_no: str | None = Field(None, max_length=200)
    building_name: str | None = Field(None, max_length=200)
    building_no: str | None = Field(None, max_length=200)
    locality: str | None = Field(None, max_length=200)
    city: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    pincode: str | None = Field(None, max_length=20)
    landmark: str | None = Field(None, max_length=200)
    pet_name: str | None = Field(None, max_length=100)

    latitude: float | None = Field(None, ge=MIN_LATITUDE, le=MAX_LATITUDE)
    longitude: float | None = Field(None, ge=MIN_LONGITUDE, le=MAX_LONGITUDE)
    formatted_address: str | None = None
    place_id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        if isinstance(v, bool):
            raise ValueError("id must be a string")
        if isinstance(v, int):
            return str(v)
        return v or None

    @field_validator("created_at", "updated_at")
    @classmethod
    def check_timestamp(cls, v: str | None) -> str | None:
        if v:
            try:
                parse_timestamp(v)
            except ValueError:
                raise ValueError("must be an ISO-8601 timestamp")
        return v or None

    def to_record(self) -> dict:
        """Persisted (camelCase) form without absent fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _field_errors(exc: ValidationError) -> dict[str, str]:
    return {
        ".".join(str(loc) for loc in err["loc"]) or "address": err["msg"]
        for err in exc.errors()
    }


def normalize_address(address_data) -> dict:
    """Validate arbitrary caller input into a persisted-form dict.

    Raises AddressValidationError listing every offending field.
    """
    if isinstance(address_data, AddressRecord):
        return address_data.to_record()
    if not hasattr(address_data, "keys"):
        raise AddressValidationError(
            "Address data must be a mapping",
            {"address": "expected an object"},
        )
    try:
        return AddressRecord.model_validate(dict(address_data)).to_record()
    except ValidationError as e:
        raise AddressValidationError("Invalid address data", _field_errors(e))
