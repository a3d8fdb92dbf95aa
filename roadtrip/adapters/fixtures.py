"""Deterministic fixture-backed providers for offline runs and tests.

Same interfaces as the live adapters; nothing here touches the network.
"""

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from roadtrip.adapters.opendatasoft import parse_record
from roadtrip.models.geo import LatLng
from roadtrip.models.providers import DatasetPage, DirectionsResult, PlaceResult, PlaceSuggestion
from roadtrip.planning.errors import GeocodeError
from roadtrip.planning.geometry import haversine_distance

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

# Stub road model: 25% detour over the great circle at 80 km/h
STUB_ROAD_FACTOR = 1.25
STUB_SPEED_KMH = 80.0


def load_city_records(path: Path | None = None) -> list[dict[str, Any]]:
    """Load raw dataset records (OpenDataSoft record shape) from fixtures."""
    with open(path or FIXTURES_DIR / "cities.json", encoding="utf-8") as f:
        records: list[dict[str, Any]] = json.load(f)
    return records


class FixtureCityDataset:
    """City dataset served from fixtures with the live paging semantics."""

    def __init__(self, records: Sequence[dict[str, Any]] | None = None) -> None:
        self._records = list(records) if records is not None else load_city_records()
        self.pages_served = 0

    async def fetch_page(
        self,
        *,
        offset: int,
        limit: int,
        min_population: int,
        region: str,
    ) -> DatasetPage:
        """Return records matching the population/region filter, population descending."""
        self.pages_served += 1
        matching = [
            r
            for r in self._records
            if (r.get("population") or 0) >= min_population
            and (r.get("timezone") or "").startswith(region)
        ]
        matching.sort(key=lambda r: -(r.get("population") or 0))
        page = matching[offset : offset + limit]
        cities = [city for city in (parse_record(r) for r in page) if city is not None]
        return DatasetPage(cities=cities, raw_count=len(page))


class FixtureGeocoder:
    """Resolves addresses that mention a known city name."""

    def __init__(self, locations: Mapping[str, LatLng] | None = None) -> None:
        if locations is None:
            locations = {
                r["name"]: LatLng(lat=r["coordinates"]["lat"], lng=r["coordinates"]["lon"])
                for r in load_city_records()
            }
        # Longest names first so "Frankfurt am Main" wins over a shorter overlap
        self._locations = sorted(locations.items(), key=lambda kv: -len(kv[0]))

    async def geocode(self, address: str) -> LatLng:
        needle = address.casefold()
        for name, location in self._locations:
            if name.casefold() in needle:
                return location
        raise GeocodeError(f"Geocoding failed for {address!r}: ZERO_RESULTS")


class StubPlacesProvider:
    """Places search over a fixed list of localities (empty by default)."""

    def __init__(
        self,
        localities: Sequence[PlaceResult] = (),
        suggestions: Sequence[str] | None = None,
    ) -> None:
        self._localities = list(localities)
        if suggestions is None:
            suggestions = [f"{r['name']}, {r['cou_name_en']}" for r in load_city_records()]
        self._suggestions = list(suggestions)

    async def nearby_localities(self, center: LatLng, radius_meters: int) -> list[PlaceResult]:
        radius_km = radius_meters / 1000
        return [p for p in self._localities if haversine_distance(center, p.location) <= radius_km]

    async def autocomplete(self, query: str) -> list[PlaceSuggestion]:
        prefix = query.casefold()
        return [
            PlaceSuggestion(label=label, place_id=f"fixture:{label.split(',')[0].casefold()}")
            for label in self._suggestions
            if label.casefold().startswith(prefix)
        ]


class StubRoutingProvider:
    """Deterministic driving estimate; returns a synthetic route payload."""

    async def route(self, origin: LatLng, destination: LatLng) -> DirectionsResult:
        road_km = haversine_distance(origin, destination) * STUB_ROAD_FACTOR
        return DirectionsResult(
            distance_meters=road_km * 1000,
            duration_seconds=road_km / STUB_SPEED_KMH * 3600,
            raw={
                "provider": "stub",
                "origin": origin.model_dump(),
                "destination": destination.model_dump(),
            },
        )
