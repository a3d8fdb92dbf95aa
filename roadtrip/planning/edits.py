"""Edits to an assembled plan: swapping a stop and overriding stay lengths.

Each edit returns a new TripPlan and leaves the input untouched. Only
the pipeline fragments the edit invalidates are re-run.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import timedelta

from roadtrip.models.trip import City, TripPlan
from roadtrip.planning.corridor import score_city
from roadtrip.planning.day_allocator import layout_stays
from roadtrip.planning.geometry import haversine_distance
from roadtrip.planning.segmenter import RouteSegmenter, summarize_segments
from roadtrip.tools.executor import CancelToken

logger = logging.getLogger(__name__)

FAR_REPLACEMENT_KM = 200.0


def is_far_replacement(original: City, replacement: City) -> bool:
    """Whether swapping original for replacement moves the stop more than 200 km."""
    return haversine_distance(original.location, replacement.location) > FAR_REPLACEMENT_KM


async def replace_city(
    plan: TripPlan,
    index: int,
    new_city: City,
    segmenter: RouteSegmenter,
    cancel_token: CancelToken | None = None,
) -> TripPlan:
    """Swap the intermediate city at index for new_city.

    new_city is re-scored. The stay keeps its length and day numbering;
    the two legs touching the city are re-routed and totals recomputed.

    Raises:
        ValueError: index is the origin, the destination, or out of range
    """
    last = len(plan.cities) - 1
    if not 0 < index < last:
        raise ValueError(f"only intermediate cities can be replaced (index 1..{last - 1})")

    old_city = plan.cities[index]
    if is_far_replacement(old_city, new_city):
        logger.warning(
            "Replacing %s with %s moves the stop %.0f km",
            old_city.name,
            new_city.name,
            haversine_distance(old_city.location, new_city.location),
        )

    new_city = score_city(new_city)
    cities = list(plan.cities)
    cities[index] = new_city

    inbound, outbound = await asyncio.gather(
        segmenter.segment_pair(cities[index - 1], new_city, index - 1, cancel_token),
        segmenter.segment_pair(new_city, cities[index + 1], index, cancel_token),
    )

    segments = list(plan.segments)
    segments[index - 1] = inbound
    segments[index] = outbound
    stays = list(plan.city_stays)
    stays[index] = stays[index].model_copy(update={"city": new_city})

    total_distance, total_driving = summarize_segments(segments)
    return TripPlan(
        cities=cities,
        segments=segments,
        city_stays=stays,
        total_days=plan.total_days,
        total_distance_meters=total_distance,
        total_driving_seconds=total_driving,
        start_date=plan.start_date,
        end_date=plan.end_date,
    )


def reallocate_days(plan: TripPlan, days_by_index: Mapping[int, int]) -> TripPlan:
    """Apply per-city day overrides and re-lay the stays.

    total_days and end_date follow the new sum; start_date is kept.

    Raises:
        ValueError: Unknown index, negative days, or days given to the origin
    """
    days = [stay.days for stay in plan.city_stays]
    for index, value in days_by_index.items():
        if not 0 <= index < len(days):
            raise ValueError(f"no city at index {index}")
        if value < 0:
            raise ValueError("days must be non-negative")
        if index == 0 and value != 0:
            raise ValueError("the origin city cannot receive days")
        days[index] = value

    total_days = sum(days)
    end_date = plan.start_date + timedelta(days=max(total_days - 1, 0))
    return plan.model_copy(
        update={
            "city_stays": layout_stays(plan.cities, days),
            "total_days": total_days,
            "end_date": end_date,
        }
    )
