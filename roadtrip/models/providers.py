"""Payloads exchanged with external providers."""

from typing import Any

from pydantic import BaseModel, Field

from roadtrip.models.geo import LatLng
from roadtrip.models.trip import City


class PlaceResult(BaseModel):
    """A locality returned by a places search."""

    name: str
    location: LatLng
    place_id: str


class DirectionsResult(BaseModel):
    """Driving route between two points as reported by a routing provider."""

    distance_meters: float = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    raw: Any = None


class DatasetPage(BaseModel):
    """One page of the city dataset.

    raw_count is the number of records the provider returned before
    unusable rows were dropped; paging stops on a short raw page.
    """

    cities: list[City]
    raw_count: int = Field(..., ge=0)


class PlaceSuggestion(BaseModel):
    """An autocomplete prediction (no coordinates until resolved)."""

    label: str
    place_id: str
