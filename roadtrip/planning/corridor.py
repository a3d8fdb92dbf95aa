"""Corridor discovery: candidate cities in a band around the origin-destination line.

A city qualifies when it lies within CORRIDOR_WIDTH_KM of the straight
origin->destination segment and projects onto it within a 10% overshoot
on either end. Qualifying cities are scored by importance:

    base by population tier (100..250)
    +50 recognised tourist destination
    +30 national capital
"""

import logging
from collections.abc import Iterable

from roadtrip.models.geo import LatLng
from roadtrip.models.trip import MAX_IMPORTANCE, City
from roadtrip.planning.catalog import CityCatalog
from roadtrip.planning.geometry import (
    haversine_distance,
    point_to_line_distance,
    position_along_route,
)
from roadtrip.tools.executor import CancelToken

logger = logging.getLogger(__name__)

CORRIDOR_WIDTH_KM = 150.0
CORRIDOR_OVERSHOOT = 0.1
CORRIDOR_SAMPLE_INTERVALS = 5
PLACES_SEARCH_RADIUS_M = 100_000

ORIGIN_IMPORTANCE = 0
DESTINATION_IMPORTANCE = 250

TOURIST_BONUS = 50
CAPITAL_BONUS = 30

# (minimum population, base score), checked top-down
POPULATION_TIERS: tuple[tuple[int, int], ...] = (
    (2_000_000, 250),
    (1_000_000, 200),
    (500_000, 160),
    (200_000, 130),
)
BASE_IMPORTANCE = 100

TOURIST_DESTINATIONS = (
    "Paris", "London", "Berlin", "Rome", "Madrid", "Barcelona", "Amsterdam",
    "Vienna", "Prague", "Budapest", "Milan", "Venice", "Florence", "Munich",
    "Zurich", "Geneva", "Lyon", "Nice", "Salzburg", "Bruges", "Krakow",
)  # fmt: skip

NATIONAL_CAPITALS = (
    "Paris", "London", "Berlin", "Rome", "Madrid", "Amsterdam", "Vienna",
    "Prague", "Budapest", "Warsaw", "Brussels", "Bern", "Stockholm",
    "Copenhagen", "Oslo", "Helsinki", "Dublin", "Lisbon", "Athens",
)  # fmt: skip

ALTERNATIVE_DISTANCE_WEIGHT = 0.5


def _name_matches(name: str, names: Iterable[str]) -> bool:
    lowered = name.casefold()
    return any(candidate.casefold() in lowered for candidate in names)


def population_score(population: int) -> int:
    """Base importance from the population tier."""
    for threshold, score in POPULATION_TIERS:
        if population >= threshold:
            return score
    return BASE_IMPORTANCE


def calculate_importance(city: City) -> int:
    """Importance score for a city, capped at MAX_IMPORTANCE."""
    score = population_score(city.population)
    if _name_matches(city.name, TOURIST_DESTINATIONS):
        score += TOURIST_BONUS
    if _name_matches(city.name, NATIONAL_CAPITALS):
        score += CAPITAL_BONUS
    return min(score, MAX_IMPORTANCE)


def score_city(city: City) -> City:
    return city.model_copy(update={"importance": calculate_importance(city)})


def as_origin(city: City) -> City:
    """The departure city is never a stop."""
    return city.model_copy(update={"importance": ORIGIN_IMPORTANCE})


def as_destination(city: City) -> City:
    """The destination always ranks high enough to earn a proper stay."""
    return city.model_copy(update={"importance": DESTINATION_IMPORTANCE})


def in_corridor(location: LatLng, start: LatLng, end: LatLng) -> bool:
    distance = point_to_line_distance(location, start, end)
    position = position_along_route(location, start, end)
    return (
        distance <= CORRIDOR_WIDTH_KM
        and -CORRIDOR_OVERSHOOT <= position <= 1 + CORRIDOR_OVERSHOOT
    )


def corridor_sample_points(
    start: LatLng, end: LatLng, intervals: int = CORRIDOR_SAMPLE_INTERVALS
) -> list[LatLng]:
    """Evenly spaced points on the straight line, both endpoints included."""
    return [
        LatLng(
            lat=start.lat + (end.lat - start.lat) * i / intervals,
            lng=start.lng + (end.lng - start.lng) * i / intervals,
        )
        for i in range(intervals + 1)
    ]


class CorridorDiscovery:
    """Finds and scores candidate stops between two points."""

    def __init__(self, catalog: CityCatalog) -> None:
        self.catalog = catalog

    async def discover(
        self,
        origin: LatLng,
        destination: LatLng,
        cancel_token: CancelToken | None = None,
    ) -> list[City]:
        """Scored cities inside the origin-destination corridor.

        Raises:
            CatalogUnavailable: Every catalog source failed
        """
        candidates = await self.catalog.collect(
            corridor_sample_points(origin, destination),
            PLACES_SEARCH_RADIUS_M,
            cancel_token,
            keep=lambda city: in_corridor(city.location, origin, destination),
        )
        scored = [score_city(city) for city in candidates]

        logger.info(
            "Found %d cities in corridor",
            len(scored),
            extra={"structured": {"in_corridor": len(scored)}},
        )
        return scored

    async def find_alternatives(
        self,
        city: City,
        max_distance_km: float = CORRIDOR_WIDTH_KM,
        cancel_token: CancelToken | None = None,
    ) -> list[City]:
        """Scored cities near city that could replace it, best first.

        Ranked by importance minus half the distance in km, so a notable
        city slightly farther away beats a closer minor one.
        """
        nearby = await self.catalog.near(city.location, max_distance_km, cancel_token)
        alternatives = [score_city(c) for c in nearby if not c.same_place(city)]

        def rank(candidate: City) -> float:
            distance = haversine_distance(city.location, candidate.location)
            return candidate.importance - distance * ALTERNATIVE_DISTANCE_WEIGHT

        alternatives.sort(key=rank, reverse=True)
        return alternatives
