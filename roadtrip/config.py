"""Typed settings configuration - single source of truth."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Provider wiring: deterministic fixtures or the real web services
    provider_mode: Literal["stub", "live"] = "stub"

    # External APIs
    google_maps_api_key: str = ""
    opendatasoft_api_key: str = ""
    opendatasoft_base_url: str = "https://data.opendatasoft.com/api/explore/v2.1"
    opendatasoft_dataset: str = "geonames-all-cities-with-a-population-1000@public"

    # City catalog region (dataset timezone prefix)
    catalog_region: str = "Europe/"

    # Directions region bias (ccTLD)
    directions_region: str = "eu"

    # Timeouts (milliseconds)
    provider_timeout_ms: int = 4000

    # Max concurrent provider calls per fan-out
    fanout_cap: int = 4


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
