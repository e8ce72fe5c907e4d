"""Saved Addresses — CRUD and default promotion over the AddressStore.

Invariants:
    - Routes never touch the storage key directly; everything goes through AddressStore
    - POST never accepts a client-chosen id (creates are always store-assigned)
    - mode=manual|pinned applies the capture path's form rules before the store's schema check
    - Read failures degrade to an empty list (store contract); write failures surface as 503

Design Decisions:
    - Body taken as a plain object: the store's schema is the single validation point,
      so extra client fields are preserved exactly like store.save() preserves them
    - /default declared before /{address_id} so it is not captured as an id
"""

import logging
from typing import Literal

from fastapi import APIRouter, Body, Depends, Query, status

from address_capture.api.dependencies import get_address_store
from address_capture.core.address_validation import (
    validate_manual_address, validate_pinned_address,
)
from address_capture.core.errors import AddressValidationError
from address_capture.services.address_store import AddressStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/addresses", tags=["addresses"])

CaptureMode = Literal["manual", "pinned"]

_FORM_VALIDATORS = {
    "manual": validate_manual_address,
    "pinned": validate_pinned_address,
}


def _check_form(body: dict, mode: CaptureMode | None) -> None:
    if mode is None:
        return
    errors = _FORM_VALIDATORS[mode](body)
    if errors:
        raise AddressValidationError(
            f"Address form ({mode}) has {len(errors)} invalid field(s)", errors,
        )


@router.get("")
async def list_addresses(
    address_type: str | None = Query(None, alias="type"),
    store: AddressStore = Depends(get_address_store),
):
    """All saved addresses, newest first, optionally filtered by addressType."""
    if address_type:
        addresses = await store.get_by_type(address_type)
    else:
        addresses = await store.get_all()
    return {"addresses": addresses}


@router.get("/default")
async def get_default_address(store: AddressStore = Depends(get_address_store)):
    return {"address": await store.get_default()}


@router.get("/{address_id}")
async def get_address(
    address_id: str, store: AddressStore = Depends(get_address_store),
):
    return await store.get(address_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_address(
    body: dict = Body(...),
    mode: CaptureMode | None = Query(None),
    store: AddressStore = Depends(get_address_store),
):
    """Save a new address. isDefault=true moves the default flag to it."""
    body.pop("id", None)
    _check_form(body, mode)
    return await store.save(body)


@router.put("/{address_id}")
async def update_address(
    address_id: str,
    body: dict = Body(...),
    mode: CaptureMode | None = Query(None),
    store: AddressStore = Depends(get_address_store),
):
    """Fully replace an existing address (createdAt kept if the body carries it)."""
    _check_form(body, mode)
    return await store.save({**body, "id": address_id})


@router.post("/{address_id}/default")
async def set_default_address(
    address_id: str, store: AddressStore = Depends(get_address_store),
):
    return await store.set_default(address_id)


@router.delete("/{address_id}")
async def delete_address(
    address_id: str, store: AddressStore = Depends(get_address_store),
):
    """Remove an address; returns what is left. Unknown ids are a no-op."""
    return {"addresses": await store.delete(address_id)}
