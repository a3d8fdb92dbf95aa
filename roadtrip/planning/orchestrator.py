"""Trip planning pipeline.

Runs the stages strictly in order:

    geocoding -> corridor_discovery -> route_building
        -> day_allocation -> segmentation -> assembled

A failing stage aborts the run with PlanningAborted naming the stage;
a cancelled run raises PlanningCancelled. No partial plan is returned.
"""

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from datetime import date
from enum import Enum
from typing import TypeVar

from roadtrip.adapters.protocols import Geocoder
from roadtrip.models.geo import LatLng
from roadtrip.models.trip import City, CityStay, RouteSegment, TripPlan, TripRequest
from roadtrip.planning.corridor import CorridorDiscovery, as_destination, as_origin
from roadtrip.planning.day_allocator import allocate_days
from roadtrip.planning.errors import PlanningAborted, PlanningCancelled
from roadtrip.planning.route_builder import build_route
from roadtrip.planning.segmenter import RouteSegmenter, summarize_segments
from roadtrip.tools.executor import CancelToken, ToolCancelledError, ToolContext, ToolExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")

STREET_KEYWORDS = re.compile(r"\b(rue|ul|street|avenue|boulevard|place)\b")
POSTAL_PREFIX = re.compile(r"^\d{4,5}")
POSTAL_CITY = re.compile(r"^\d{4,5}\s+(.+)$")


class PlanningStage(str, Enum):
    GEOCODING = "geocoding"
    CORRIDOR_DISCOVERY = "corridor_discovery"
    ROUTE_BUILDING = "route_building"
    DAY_ALLOCATION = "day_allocation"
    SEGMENTATION = "segmentation"
    ASSEMBLED = "assembled"


def extract_city_name(address: str) -> str:
    """Best-effort city label from a free-text address.

    "31 Rue de Rivoli, 75004 Paris, France" -> "Paris"
    "Munich, Germany" -> "Munich"
    """
    parts = [part.strip() for part in address.split(",")]
    if len(parts) >= 2:
        first = parts[0].lower()
        if any(ch.isdigit() for ch in first) or STREET_KEYWORDS.search(first):
            if POSTAL_PREFIX.match(parts[1]):
                postal = POSTAL_CITY.match(parts[1])
                if postal:
                    return postal.group(1)
                if len(parts) >= 3:
                    return parts[2]
            return parts[1]
    return parts[0]


def trip_length_days(start_date: date, end_date: date) -> int:
    """Inclusive day count."""
    return (end_date - start_date).days + 1


def assemble_plan(
    route: list[City],
    stays: list[CityStay],
    segments: list[RouteSegment],
    start_date: date,
    end_date: date,
) -> TripPlan:
    total_distance, total_driving = summarize_segments(segments)
    return TripPlan(
        cities=route,
        segments=segments,
        city_stays=stays,
        total_days=sum(stay.days for stay in stays),
        total_distance_meters=total_distance,
        total_driving_seconds=total_driving,
        start_date=start_date,
        end_date=end_date,
    )


class TripPlanningOrchestrator:
    """Wires geocoding, discovery, route building, allocation and segmentation."""

    def __init__(
        self,
        geocoder: Geocoder,
        discovery: CorridorDiscovery,
        segmenter: RouteSegmenter,
        executor: ToolExecutor | None = None,
        *,
        timeout_ms: int | None = None,
        trace_id: str = "planner",
    ) -> None:
        """Initialize orchestrator.

        Args:
            geocoder: Resolves origin and destination addresses
            discovery: Corridor candidate discovery
            segmenter: Per-leg routing
            executor: Provider call executor for geocoding (optional)
            timeout_ms: Per-call geocoding timeout override
            trace_id: Trace id attached to provider call logs
        """
        self._geocoder = geocoder
        self._discovery = discovery
        self._segmenter = segmenter
        self._executor = executor or ToolExecutor()
        self._timeout_ms = timeout_ms
        self._trace_id = trace_id

    async def _run_stage(
        self,
        stage: PlanningStage,
        fn: Callable[[], Awaitable[T]],
        cancel_token: CancelToken,
    ) -> T:
        if cancel_token.cancelled:
            raise PlanningCancelled(stage.value)

        logger.info(
            "Stage %s started", stage.value, extra={"structured": {"stage": stage.value}}
        )
        try:
            result = await fn()
        except ToolCancelledError as e:
            logger.info("Stage %s cancelled", stage.value)
            raise PlanningCancelled(stage.value) from e
        except Exception as e:
            logger.error(
                "Stage %s failed: %s",
                stage.value,
                e,
                extra={"structured": {"stage": stage.value, "error": type(e).__name__}},
            )
            raise PlanningAborted(stage.value, e) from e

        logger.info(
            "Stage %s completed", stage.value, extra={"structured": {"stage": stage.value}}
        )
        return result

    async def _geocode(self, address: str, cancel_token: CancelToken) -> LatLng:
        return await self._executor.execute(
            ToolContext(trace_id=self._trace_id, tool_name="geocode"),
            lambda: self._geocoder.geocode(address),
            timeout_ms=self._timeout_ms,
            cancel_token=cancel_token,
        )

    async def plan_trip(
        self,
        request: TripRequest,
        cancel_token: CancelToken | None = None,
    ) -> TripPlan:
        """Plan a road trip for request.

        Raises:
            PlanningAborted: A stage failed (.stage names it, .cause holds the error)
            PlanningCancelled: cancel_token fired before or during a stage
        """
        if cancel_token is None:
            cancel_token = CancelToken()

        logger.info(
            "Planning trip %s -> %s (%s to %s)",
            request.origin,
            request.destination,
            request.start_date,
            request.end_date,
        )

        async def geocode_endpoints() -> tuple[City, City]:
            origin_coords, destination_coords = await asyncio.gather(
                self._geocode(request.origin, cancel_token),
                self._geocode(request.destination, cancel_token),
            )
            origin = as_origin(City(name=extract_city_name(request.origin), location=origin_coords))
            destination = as_destination(
                City(name=extract_city_name(request.destination), location=destination_coords)
            )
            return origin, destination

        origin, destination = await self._run_stage(
            PlanningStage.GEOCODING, geocode_endpoints, cancel_token
        )
        total_days = trip_length_days(request.start_date, request.end_date)

        candidates = await self._run_stage(
            PlanningStage.CORRIDOR_DISCOVERY,
            lambda: self._discovery.discover(origin.location, destination.location, cancel_token),
            cancel_token,
        )

        async def route_stage() -> list[City]:
            return build_route(origin, destination, candidates)

        route = await self._run_stage(PlanningStage.ROUTE_BUILDING, route_stage, cancel_token)

        async def allocation_stage() -> list[CityStay]:
            return allocate_days(route, total_days)

        stays = await self._run_stage(PlanningStage.DAY_ALLOCATION, allocation_stage, cancel_token)

        segments = await self._run_stage(
            PlanningStage.SEGMENTATION,
            lambda: self._segmenter.segment(route, cancel_token),
            cancel_token,
        )

        async def assembly_stage() -> TripPlan:
            return assemble_plan(route, stays, segments, request.start_date, request.end_date)

        plan = await self._run_stage(PlanningStage.ASSEMBLED, assembly_stage, cancel_token)
        logger.info(
            "Trip planned: %d cities, %d segments, %.0f km",
            len(plan.cities),
            len(plan.segments),
            plan.total_distance_meters / 1000,
            extra={
                "structured": {
                    "cities": len(plan.cities),
                    "total_days": plan.total_days,
                    "total_distance_meters": round(plan.total_distance_meters),
                }
            },
        )
        return plan
