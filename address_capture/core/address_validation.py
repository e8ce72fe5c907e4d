"""Address Form Validation — field rules for the two capture paths.

Invariants:
    - Validators are PURE: return {field: message}, empty dict means valid
    - Pincodes are exactly 6 digits, phone numbers exactly 10 digits
    - Pinned addresses (map / search / current location) must carry numeric coordinates

Design Decisions:
    - Field-error dicts over raising: the API gathers all errors for one response
      and raises AddressValidationError once
    - Messages are user-facing and shown verbatim next to the form field
"""

import re
from collections.abc import Mapping

PINCODE_PATTERN = re.compile(r"^\d{6}$")
PHONE_PATTERN = re.compile(r"^\d{10}$")
PINCODE_LENGTH = 6


def _text(form: Mapping, field: str) -> str:
    value = form.get(field)
    return value.strip() if isinstance(value, str) else ""


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_pincode(pincode: str) -> bool:
    return bool(PINCODE_PATTERN.match(pincode or ""))


def _check_phone(form: Mapping, errors: dict[str, str], missing: str, invalid: str) -> None:
    phone = _text(form, "receiverPhone")
    if not phone:
        errors["receiverPhone"] = missing
    elif not PHONE_PATTERN.match(phone):
        errors["receiverPhone"] = invalid


def validate_pinned_address(form: Mapping) -> dict[str, str]:
    """Rules for an address confirmed on a map pin, search result or GPS fix."""
    errors: dict[str, str] = {}
    if not _text(form, "houseNo"):
        errors["houseNo"] = "House/Flat No. is required"
    if not _text(form, "receiverName"):
        errors["receiverName"] = "Receiver's name is required"
    _check_phone(
        form, errors,
        "Receiver's phone number is required",
        "Please enter a valid 10-digit phone number",
    )
    if not (_is_number(form.get("latitude")) and _is_number(form.get("longitude"))):
        errors["location"] = "Please select a valid location"
    return errors


def validate_manual_address(form: Mapping) -> dict[str, str]:
    """Rules for an address typed in by hand."""
    errors: dict[str, str] = {}
    pincode = _text(form, "pincode")
    if not pincode:
        errors["pincode"] = "Pincode is required"
    elif not is_valid_pincode(pincode):
        errors["pincode"] = "Enter a valid 6-digit pincode"

    if not _text(form, "city"):
        errors["city"] = "City is required"
    if not _text(form, "state"):
        errors["state"] = "State is required"
    if not _text(form, "houseNo"):
        errors["houseNo"] = "House/Flat no. is required"
    if not _text(form, "receiverName"):
        errors["receiverName"] = "Name is required"
    _check_phone(
        form, errors,
        "Mobile number is required",
        "Enter a valid 10-digit mobile number",
    )
    return errors
