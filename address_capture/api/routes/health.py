"""Health Probes — liveness, and readiness gated on the address storage key.

Invariants:
    - GET /health/ answers 200 while the process runs
    - GET /health/ready answers 503 when the storage key cannot be read or parsed
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from address_capture.api.dependencies import get_address_store
from address_capture.services.address_store import AddressStore, storage_is_reachable

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {
        "status": "healthy",
        "service": "address-capture-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(store: AddressStore = Depends(get_address_store)):
    """Ready once the saved-address collection can be loaded."""
    if not await storage_is_reachable(store):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "storage_unavailable",
            },
        )
    return {"status": "ready", "checks": {"storage": "healthy"}}
