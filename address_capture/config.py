"""Settings — everything tunable comes from the environment or a .env file.

Invariants:
    - API keys are read from the environment only; the defaults are placeholders
    - get_settings() returns one cached Settings per process

Design Decisions:
    - Defaults run the service on a local SQLite file with no other setup
    - Grouped by concern: database, storage key, places, device location, API, logging
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database (backs the key-value persistence provider)
    database_url: str = "sqlite+aiosqlite:///address_capture.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = True

    # Address storage — the single key holding the serialized collection
    address_storage_key: str = "@user_addresses"

    # Places / geocoding
    google_api_key: str = "google-api-key-placeholder"
    places_base_url: str = "https://maps.googleapis.com/maps/api"
    ip_geolocation_url: str = "https://ipapi.co/json/"
    places_timeout_seconds: float = 10.0
    places_search_radius_m: int = 50_000
    pincode_country: str = "IN"

    # Device location defaults (one-shot GPS read)
    location_high_accuracy: bool = False
    location_timeout_ms: int = 30_000
    location_maximum_age_ms: int = 60_000

    # API
    cors_origins: list[str] = ["http://localhost:8081"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
