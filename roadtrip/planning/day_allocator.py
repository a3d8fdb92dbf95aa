"""Distributes the trip's day budget across the route's cities.

The origin gets no days. Every other city gets a base allocation from
its importance (the destination on a more generous scale), capped by
what is left. Leftover days are then handed out one at a time, first to
important cities under the per-city cap, then to any city under the cap,
and finally all at once to the destination.
"""

import logging
from collections.abc import Sequence

from roadtrip.models.trip import City, CityStay
from roadtrip.planning.errors import NoCitiesError

logger = logging.getLogger(__name__)

MAX_DAYS_PER_CITY = 7
PRIORITY_IMPORTANCE = 150

# (minimum importance, base days), checked top-down
DESTINATION_BASE_DAYS: tuple[tuple[int, int], ...] = ((250, 5), (200, 4), (150, 3))
DESTINATION_MIN_DAYS = 2
STOP_BASE_DAYS: tuple[tuple[int, int], ...] = ((280, 5), (250, 4), (200, 3), (150, 2))
STOP_MIN_DAYS = 1


def base_days(city: City, is_destination: bool) -> int:
    tiers, fallback = (
        (DESTINATION_BASE_DAYS, DESTINATION_MIN_DAYS)
        if is_destination
        else (STOP_BASE_DAYS, STOP_MIN_DAYS)
    )
    for threshold, days in tiers:
        if city.importance >= threshold:
            return days
    return fallback


def _distribute_remaining(route: Sequence[City], allocation: list[int], remaining: int) -> None:
    while remaining > 0:
        distributed = False

        for i in range(1, len(route)):
            if remaining == 0:
                break
            if route[i].importance >= PRIORITY_IMPORTANCE and allocation[i] < MAX_DAYS_PER_CITY:
                allocation[i] += 1
                remaining -= 1
                distributed = True

        if not distributed:
            for i in range(1, len(route)):
                if remaining == 0:
                    break
                if allocation[i] < MAX_DAYS_PER_CITY:
                    allocation[i] += 1
                    remaining -= 1
                    distributed = True

        if not distributed:
            # Everyone is capped (or the route is a single city)
            allocation[-1] += remaining
            remaining = 0


def layout_stays(route: Sequence[City], allocation: Sequence[int]) -> list[CityStay]:
    """Contiguous stays in route order; day numbering starts at 1 and skips 0-day cities."""
    stays: list[CityStay] = []
    current_day = 1
    for city, days in zip(route, allocation, strict=True):
        if days > 0:
            stays.append(
                CityStay(
                    city=city,
                    days=days,
                    start_day=current_day,
                    end_day=current_day + days - 1,
                )
            )
            current_day += days
        else:
            stays.append(CityStay(city=city, days=0))
    return stays


def allocate_days(route: Sequence[City], total_days: int) -> list[CityStay]:
    """Assign every one of total_days to the route's cities.

    Raises:
        NoCitiesError: route is empty
        ValueError: total_days is negative
    """
    if not route:
        raise NoCitiesError("No cities to allocate days to")
    if total_days < 0:
        raise ValueError("total_days must be non-negative")

    allocation = [0] * len(route)
    remaining = total_days
    last = len(route) - 1

    for i in range(1, len(route)):
        allocation[i] = min(base_days(route[i], is_destination=i == last), remaining)
        remaining -= allocation[i]

    if remaining > 0:
        _distribute_remaining(route, allocation, remaining)

    logger.info(
        "Allocated %d days: %s",
        total_days,
        ", ".join(f"{city.name}={days}" for city, days in zip(route, allocation, strict=True)),
    )
    return layout_stays(route, allocation)
