"""Per-leg driving routes between consecutive cities.

Legs are independent, so they are requested concurrently (bounded by
the fan-out cap) and reassembled in route order. A leg whose routing
call fails for any reason is replaced by a straight-line estimate with
no provider route attached.
"""

import asyncio
import logging
from collections.abc import Sequence

from roadtrip.adapters.protocols import RoutingProvider
from roadtrip.models.trip import City, RouteSegment
from roadtrip.planning.errors import InsufficientCitiesError
from roadtrip.planning.geometry import haversine_distance
from roadtrip.tools.executor import CancelToken, ToolCancelledError, ToolContext, ToolExecutor
from roadtrip.utils.metrics import segment_estimates_total

logger = logging.getLogger(__name__)

ROAD_FACTOR = 1.3
FALLBACK_SECONDS_PER_KM = 40


def estimate_segment(from_city: City, to_city: City, segment_index: int) -> RouteSegment:
    """Straight-line estimate inflated by ROAD_FACTOR, ~90 km/h."""
    distance_km = haversine_distance(from_city.location, to_city.location) * ROAD_FACTOR
    return RouteSegment(
        from_city=from_city,
        to_city=to_city,
        distance_meters=distance_km * 1000,
        duration_seconds=distance_km * FALLBACK_SECONDS_PER_KM,
        provider_route=None,
        segment_index=segment_index,
    )


def summarize_segments(segments: Sequence[RouteSegment]) -> tuple[float, float]:
    """(total distance in meters, total driving seconds)."""
    return (
        sum(s.distance_meters for s in segments),
        sum(s.duration_seconds for s in segments),
    )


class RouteSegmenter:
    def __init__(
        self,
        routing: RoutingProvider,
        executor: ToolExecutor | None = None,
        *,
        timeout_ms: int | None = None,
        fanout_cap: int = 4,
        trace_id: str = "segmenter",
    ) -> None:
        self._routing = routing
        self._executor = executor or ToolExecutor()
        self._timeout_ms = timeout_ms
        self._fanout_cap = fanout_cap
        self._trace_id = trace_id

    async def segment_pair(
        self,
        from_city: City,
        to_city: City,
        segment_index: int,
        cancel_token: CancelToken | None = None,
    ) -> RouteSegment:
        """Route one leg, degrading to an estimate on any provider failure.

        Raises:
            ToolCancelledError: The run was cancelled
        """
        try:
            result = await self._executor.execute(
                ToolContext(trace_id=self._trace_id, tool_name="directions"),
                lambda: self._routing.route(from_city.location, to_city.location),
                timeout_ms=self._timeout_ms,
                cancel_token=cancel_token,
            )
        except ToolCancelledError:
            raise
        except Exception as e:
            segment_estimates_total.inc()
            logger.warning(
                "Routing %s -> %s failed (%s), using estimate",
                from_city.name,
                to_city.name,
                type(e).__name__,
                extra={"structured": {"segment_index": segment_index, "error": str(e)}},
            )
            return estimate_segment(from_city, to_city, segment_index)

        return RouteSegment(
            from_city=from_city,
            to_city=to_city,
            distance_meters=result.distance_meters,
            duration_seconds=result.duration_seconds,
            provider_route=result.raw,
            segment_index=segment_index,
        )

    async def segment(
        self,
        route: Sequence[City],
        cancel_token: CancelToken | None = None,
    ) -> list[RouteSegment]:
        """One segment per adjacent pair, in route order.

        Raises:
            InsufficientCitiesError: Fewer than two cities
            ToolCancelledError: The run was cancelled
        """
        if len(route) < 2:
            raise InsufficientCitiesError("Need at least 2 cities to create segments")

        semaphore = asyncio.Semaphore(self._fanout_cap)

        async def bounded(i: int) -> RouteSegment:
            async with semaphore:
                return await self.segment_pair(route[i], route[i + 1], i, cancel_token)

        segments = await asyncio.gather(*(bounded(i) for i in range(len(route) - 1)))
        estimates = sum(1 for s in segments if s.is_estimate)
        logger.info(
            "Segmented %d legs (%d estimated)",
            len(segments),
            estimates,
            extra={"structured": {"legs": len(segments), "estimates": estimates}},
        )
        return list(segments)
