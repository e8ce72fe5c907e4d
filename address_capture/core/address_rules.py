"""Address Collection Rules — pure transformations behind every AddressStore write.

Invariants:
    - Functions are PURE: they return new lists/dicts, inputs are never mutated
    - After apply_save(isDefault=True) or apply_set_default, exactly one record is default
    - Every write leaves at most one default, repairing stored data that carries several
    - New records are prepended (collection is most-recently-created first)
    - Identity comparisons are string comparisons (legacy numeric ids match their str form)

Design Decisions:
    - Clock and id source passed in by the shell: rules stay deterministic under test
    - Unknown ids raise AddressNotFoundError here, before the shell writes anything
"""

from datetime import datetime

from address_capture.core.errors import AddressNotFoundError
from address_capture.core.timestamps import format_timestamp, stamp_update


def same_id(record: dict, address_id: object) -> bool:
    return record.get("id") is not None and str(record["id"]) == str(address_id)


def find_address(addresses: list[dict], address_id: str) -> dict | None:
    """Return the record with the given id, or None."""
    for record in addresses:
        if same_id(record, address_id):
            return record
    return None


def count_defaults(addresses: list[dict]) -> int:
    return sum(1 for record in addresses if record.get("isDefault") is True)


def find_default(addresses: list[dict]) -> dict | None:
    """First record flagged default (at most one exists after any write)."""
    for record in addresses:
        if record.get("isDefault") is True:
            return record
    return None


def filter_by_type(addresses: list[dict], address_type: str) -> list[dict]:
    return [r for r in addresses if r.get("addressType") == address_type]


def enforce_single_default(addresses: list[dict], default_id: str) -> list[dict]:
    """Recompute every isDefault flag as (id == default_id)."""
    return [
        {**record, "isDefault": same_id(record, default_id)}
        for record in addresses
    ]


def repair_defaults(addresses: list[dict]) -> list[dict]:
    """Keep only the first (newest) default when stored data carries several."""
    if count_defaults(addresses) <= 1:
        return addresses
    return enforce_single_default(addresses, find_default(addresses)["id"])


def apply_save(
    addresses: list[dict], incoming: dict, *, now: datetime, new_id: str,
) -> tuple[list[dict], dict]:
    """Insert or replace one record. Returns (new collection, persisted record).

    incoming without "id" is a create: new_id is assigned and the record is
    prepended. incoming with "id" fully replaces the matching record.
    """
    address_id = incoming.get("id")
    previous = None
    if address_id:
        previous = find_address(addresses, address_id)
        if previous is None:
            raise AddressNotFoundError(str(address_id))

    record = dict(incoming)
    record["id"] = str(address_id) if address_id else new_id
    record["createdAt"] = incoming.get("createdAt") or format_timestamp(now)
    record["updatedAt"] = stamp_update(
        now, record["createdAt"],
        previous.get("updatedAt") if previous else None,
    )
    record["isDefault"] = bool(incoming.get("isDefault", False))

    if previous is not None:
        updated = [record if same_id(r, record["id"]) else r for r in addresses]
    else:
        updated = [record, *addresses]

    if record["isDefault"]:
        updated = enforce_single_default(updated, record["id"])
    else:
        updated = repair_defaults(updated)
    return updated, record


def apply_set_default(
    addresses: list[dict], address_id: str,
) -> tuple[list[dict], dict]:
    """Promote one record to default. Returns (new collection, promoted record)."""
    if find_address(addresses, address_id) is None:
        raise AddressNotFoundError(str(address_id))
    updated = enforce_single_default(addresses, address_id)
    return updated, find_address(updated, address_id)


def apply_delete(addresses: list[dict], address_id: str) -> list[dict]:
    """Drop the record with the given id. Unknown id leaves the collection as is."""
    remaining = [r for r in addresses if not same_id(r, address_id)]
    if len(remaining) == len(addresses):
        return remaining
    return repair_defaults(remaining)
