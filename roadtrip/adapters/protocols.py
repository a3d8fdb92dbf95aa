"""Interfaces for the external services the planner consumes.

Live (httpx) and deterministic stub implementations satisfy these and are
chosen by whoever composes the planner.
"""

from typing import Protocol

from roadtrip.models.geo import LatLng
from roadtrip.models.providers import DatasetPage, DirectionsResult, PlaceResult, PlaceSuggestion


class Geocoder(Protocol):
    """Resolves free-text addresses to coordinates."""

    async def geocode(self, address: str) -> LatLng:
        """Return coordinates for address.

        Raises:
            GeocodeError: No match or provider error
        """
        ...


class PlacesProvider(Protocol):
    """Place search around a point."""

    async def nearby_localities(self, center: LatLng, radius_meters: int) -> list[PlaceResult]:
        """Return localities (towns and cities) within radius of center."""
        ...

    async def autocomplete(self, query: str) -> list[PlaceSuggestion]:
        """Return candidate places for a partial query."""
        ...


class RoutingProvider(Protocol):
    """Driving directions between two points."""

    async def route(self, origin: LatLng, destination: LatLng) -> DirectionsResult:
        """Return the driving route.

        Raises:
            RouteError: No route or provider error
        """
        ...


class CityDatasetProvider(Protocol):
    """Paginated open city dataset, ordered by population descending."""

    async def fetch_page(
        self,
        *,
        offset: int,
        limit: int,
        min_population: int,
        region: str,
    ) -> DatasetPage:
        """Return one page of cities with importance 0."""
        ...
