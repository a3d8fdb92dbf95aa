"""Greedy route construction from corridor candidates.

Starting at the origin, repeatedly hop to the best-scoring viable
candidate until no candidate qualifies, the destination is nearer than
the best hop, or MAX_INTERMEDIATE_STOPS is reached. The route never
revisits a city and never backtracks past the tolerance.
"""

import logging
from collections.abc import Iterable, Sequence

from roadtrip.models.trip import City
from roadtrip.planning.geometry import directional_progress, haversine_distance

logger = logging.getLogger(__name__)

MAX_INTERMEDIATE_STOPS = 10
MIN_HOP_KM = 100.0
MAX_HOP_KM = 400.0
SWEET_SPOT_MIN_KM = 150.0
SWEET_SPOT_MAX_KM = 250.0
HOP_PENALTY_PER_KM = 0.5
PROGRESS_WEIGHT = 200.0
BACKTRACK_TOLERANCE = -0.1
BACKTRACK_SCORE = -1000.0
OVERSHOOT_SLACK_KM = 50.0


def score_candidate(candidate: City, current: City, destination: City) -> float:
    """Score a hop from current to candidate; higher is better.

    progress * 200 + importance, minus 0.5 per km outside the 150-250 km
    sweet spot. Backtracking hops score -1000 + importance.
    """
    progress = directional_progress(current.location, candidate.location, destination.location)
    if progress < 0:
        return BACKTRACK_SCORE + candidate.importance

    score = progress * PROGRESS_WEIGHT + candidate.importance
    hop_km = haversine_distance(current.location, candidate.location)
    if hop_km < SWEET_SPOT_MIN_KM:
        score -= (SWEET_SPOT_MIN_KM - hop_km) * HOP_PENALTY_PER_KM
    elif hop_km > SWEET_SPOT_MAX_KM:
        score -= (hop_km - SWEET_SPOT_MAX_KM) * HOP_PENALTY_PER_KM
    return score


def is_viable_hop(
    candidate: City,
    current: City,
    destination: City,
    route: Sequence[City],
) -> bool:
    """Whether candidate may be the next stop after current."""
    if candidate.same_place(current) or any(candidate.same_place(stop) for stop in route):
        return False

    progress = directional_progress(current.location, candidate.location, destination.location)
    if progress < BACKTRACK_TOLERANCE:
        return False

    hop_km = haversine_distance(current.location, candidate.location)
    if hop_km < MIN_HOP_KM or hop_km > MAX_HOP_KM:
        return False

    remaining_km = haversine_distance(current.location, destination.location)
    candidate_remaining_km = haversine_distance(candidate.location, destination.location)
    if candidate_remaining_km > remaining_km + OVERSHOOT_SLACK_KM:
        logger.debug(
            "%s would overshoot the destination by %.0f km",
            candidate.name,
            candidate_remaining_km - remaining_km,
        )
        return False

    return True


def find_best_next_city(
    current: City,
    destination: City,
    pool: Iterable[City],
    route: Sequence[City],
) -> City | None:
    """Highest-scoring viable candidate, or None. Ties keep pool order."""
    best: City | None = None
    best_score = float("-inf")
    for candidate in pool:
        if not is_viable_hop(candidate, current, destination, route):
            continue
        score = score_candidate(candidate, current, destination)
        if score > best_score:
            best, best_score = candidate, score
    return best


def build_route(start: City, end: City, candidates: Iterable[City]) -> list[City]:
    """Ordered route from start to end through greedily chosen stops.

    Always begins with start and ends with end; holds at most
    MAX_INTERMEDIATE_STOPS stops in between.
    """
    pool = [city for city in candidates if not city.same_place(end)]
    route: list[City] = [start]
    current = start

    while len(route) - 1 < MAX_INTERMEDIATE_STOPS:
        best = find_best_next_city(current, end, pool, route)
        if best is None:
            logger.info(
                "No intermediate city qualifies after %s, heading to destination", current.name
            )
            break

        to_end_km = haversine_distance(current.location, end.location)
        to_best_km = haversine_distance(current.location, best.location)
        if to_end_km < to_best_km and to_end_km <= MAX_HOP_KM:
            logger.info(
                "Destination is closer (%.0f km) than %s, skipping", to_end_km, best.name
            )
            break

        route.append(best)
        current = best

    if route[-1] != end:
        route.append(end)

    logger.info(
        "Route built: %s",
        " -> ".join(city.name for city in route),
        extra={"structured": {"stops": len(route) - 2}},
    )
    return route
