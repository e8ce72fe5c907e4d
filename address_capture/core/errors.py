"""Error Hierarchy — one exception family for the store, the geocoding chain and the API.

Invariants:
    - Each subclass fixes its code, category, severity and HTTP status as class attributes
    - 4xx errors describe caller mistakes; 5xx errors describe unavailable dependencies
    - to_response() is the only place the JSON error envelope is built
    - user_message, when set, replaces the internal message in the envelope

Design Decisions:
    - Class-level defaults over long positional super() calls: a new error type
      is a few declarative lines
    - Unknown ids are a named outcome (AddressNotFoundError), never a silent None
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    RESOURCE_NOT_FOUND = "resource_not_found"
    STORAGE = "storage"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Observability payload attached to every error."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    address_id: str | None = None
    storage_key: str | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None


class AddressCaptureError(Exception):
    """Base for every error this service raises on purpose."""

    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL
    severity = ErrorSeverity.ERROR
    http_status = 500

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()

    def to_response(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {"address_id": self.context.address_id},
            }
        }


# ─── Caller errors (4xx) ────────────────────────────────────────

class AddressValidationError(AddressCaptureError):
    """Address data rejected at the store or form boundary."""

    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(
        self,
        message: str,
        field_errors: dict[str, str] | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(message, context)
        self.field_errors = field_errors or {}

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = [
            {"field": name, "message": msg} for name, msg in self.field_errors.items()
        ]
        return response


class ResourceNotFoundError(AddressCaptureError):
    code = "RESOURCE_NOT_FOUND"
    category = ErrorCategory.RESOURCE_NOT_FOUND
    http_status = 404

    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(f"{resource_type} '{resource_id}' not found", context)
        self.resource_type = resource_type
        self.resource_id = resource_id


class AddressNotFoundError(ResourceNotFoundError):
    """No saved address carries the given id."""

    code = "ADDRESS_NOT_FOUND"

    def __init__(self, address_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.address_id = address_id
        super().__init__("Address", address_id, ctx)
        self.address_id = address_id


# ─── Dependency errors (5xx) ────────────────────────────────────

class StorageError(AddressCaptureError):
    """Reading or writing the address collection failed."""

    code = "STORAGE_ERROR"
    category = ErrorCategory.STORAGE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(
        self,
        message: str,
        operation: str,
        storage_key: str | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.storage_key = storage_key
        ctx.user_message = ctx.user_message or "Address storage is unavailable. Please try again."
        super().__init__(f"Storage {operation} failed: {message}", ctx)
        self.operation = operation
        self.storage_key = storage_key


class DatabaseError(AddressCaptureError):
    code = "DATABASE_ERROR"
    category = ErrorCategory.DATABASE
    severity = ErrorSeverity.CRITICAL
    http_status = 503

    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(f"Database {operation} failed: {message}", context)
        self.operation = operation


class DeviceLocationError(AddressCaptureError):
    """One-shot device position read failed; reason is a PositionErrorCode value."""

    code = "DEVICE_LOCATION_ERROR"
    category = ErrorCategory.EXTERNAL_API
    severity = ErrorSeverity.WARNING
    http_status = 502

    def __init__(self, reason: str, message: str = "", context: ErrorContext | None = None):
        super().__init__(message or f"Device location unavailable ({reason})", context)
        self.reason = reason
