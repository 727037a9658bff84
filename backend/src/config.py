"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env")

    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    # Primary provider pair (Geoapify). Leave empty to use the keyless
    # OpenStreetMap pair (Nominatim + Overpass) instead.
    geoapify_key: str = ""
    geoapify_geocode_url: str = "https://api.geoapify.com/v1/geocode/search"
    geoapify_places_url: str = "https://api.geoapify.com/v2/places"
    places_category: str = "healthcare.pharmacy"
    places_limit: int = 30

    # Keyless fallback pair
    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    overpass_url: str = "https://overpass-api.de/api/interpreter"
    overpass_amenity: str = "pharmacy"

    # Drug normalization (RxNorm via RxNav)
    rxnorm_base_url: str = "https://rxnav.nlm.nih.gov/REST"

    # Upstream HTTP client
    user_agent: str = "MedicationChecker/1.0"
    http_timeout_seconds: float = 15.0

    # Lookup caches. A TTL of 0 keeps entries for the process lifetime.
    cache_ttl_seconds: int = 0
    cache_max_entries: int = 1024


settings = Settings()
