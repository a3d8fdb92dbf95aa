"""Models package - re-exports for convenience."""

from roadtrip.models.geo import LatLng
from roadtrip.models.providers import (
    DatasetPage,
    DirectionsResult,
    PlaceResult,
    PlaceSuggestion,
)
from roadtrip.models.trip import (
    MAX_IMPORTANCE,
    City,
    CityStay,
    RouteSegment,
    TripPlan,
    TripRequest,
)

__all__ = [
    # Geo
    "LatLng",
    # Trip
    "City",
    "CityStay",
    "RouteSegment",
    "TripPlan",
    "TripRequest",
    "MAX_IMPORTANCE",
    # Providers
    "PlaceResult",
    "PlaceSuggestion",
    "DirectionsResult",
    "DatasetPage",
]
