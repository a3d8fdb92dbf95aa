"""Tests for editing an assembled plan."""

import asyncio
from datetime import date, timedelta

import pytest

from roadtrip.adapters.fixtures import StubRoutingProvider
from roadtrip.models import City, DirectionsResult, LatLng, TripPlan
from roadtrip.planning.day_allocator import layout_stays
from roadtrip.planning.edits import is_far_replacement, reallocate_days, replace_city
from roadtrip.planning.orchestrator import assemble_plan
from roadtrip.planning.segmenter import RouteSegmenter, estimate_segment

KARLSRUHE = City(
    name="Karlsruhe",
    location=LatLng(lat=49.00937, lng=8.40444),
    population=308_436,
    importance=130,
)
LYON = City(
    name="Lyon", location=LatLng(lat=45.74846, lng=4.84671), population=522_969, importance=210
)


class CountingRouting(StubRoutingProvider):
    def __init__(self) -> None:
        self.calls = 0

    async def route(self, origin: LatLng, destination: LatLng) -> DirectionsResult:
        self.calls += 1
        return await super().route(origin, destination)


class OverlapRouting(StubRoutingProvider):
    """Tracks how many route calls are in flight at once."""

    def __init__(self) -> None:
        self.active = 0
        self.peak = 0

    async def route(self, origin: LatLng, destination: LatLng) -> DirectionsResult:
        self.active += 1
        self.peak = max(self.peak, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return await super().route(origin, destination)


@pytest.fixture
def plan(munich: City, strasbourg: City, paris: City) -> TripPlan:
    """Munich -> Strasbourg -> Paris, six days, estimated legs."""
    route = [munich, strasbourg, paris]
    segments = [estimate_segment(route[i], route[i + 1], i) for i in range(2)]
    return assemble_plan(
        route, layout_stays(route, [0, 1, 5]), segments, date(2025, 6, 1), date(2025, 6, 6)
    )


class TestFarReplacement:
    def test_nearby_swap_is_not_far(self, strasbourg: City) -> None:
        assert is_far_replacement(strasbourg, KARLSRUHE) is False

    def test_distant_swap_is_far(self, strasbourg: City) -> None:
        assert is_far_replacement(strasbourg, LYON) is True


class TestReplaceCity:
    @pytest.mark.asyncio
    async def test_swaps_city_and_reroutes_adjacent_legs(self, plan: TripPlan) -> None:
        routing = CountingRouting()

        edited = await replace_city(plan, 1, KARLSRUHE, RouteSegmenter(routing))

        assert [c.name for c in edited.cities] == ["Munich", "Karlsruhe", "Paris"]
        assert edited.segments[0].to_city == KARLSRUHE
        assert edited.segments[1].from_city == KARLSRUHE
        assert all(not s.is_estimate for s in edited.segments)
        assert routing.calls == 2
        assert edited.city_stays[1].city == KARLSRUHE
        assert edited.city_stays[1].days == 1
        assert edited.total_days == plan.total_days
        assert edited.total_distance_meters == pytest.approx(
            sum(s.distance_meters for s in edited.segments)
        )

    @pytest.mark.asyncio
    async def test_original_plan_untouched(self, plan: TripPlan) -> None:
        await replace_city(plan, 1, KARLSRUHE, RouteSegmenter(StubRoutingProvider()))
        assert plan.cities[1].name == "Strasbourg"

    @pytest.mark.asyncio
    async def test_only_neighbouring_legs_rerouted(
        self, munich: City, strasbourg: City, paris: City
    ) -> None:
        reims = City(name="Reims", location=LatLng(lat=49.26526, lng=4.02853))
        route = [munich, strasbourg, reims, paris]
        segments = [estimate_segment(route[i], route[i + 1], i) for i in range(3)]
        four_stops = assemble_plan(
            route, layout_stays(route, [0, 2, 1, 3]), segments, date(2025, 6, 1), date(2025, 6, 6)
        )

        edited = await replace_city(four_stops, 1, KARLSRUHE, RouteSegmenter(StubRoutingProvider()))

        assert edited.segments[2] == four_stops.segments[2]
        assert edited.segments[2].is_estimate is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", [0, 2, 7])
    async def test_endpoints_cannot_be_replaced(self, plan: TripPlan, index: int) -> None:
        with pytest.raises(ValueError, match="intermediate"):
            await replace_city(plan, index, KARLSRUHE, RouteSegmenter(StubRoutingProvider()))

    @pytest.mark.asyncio
    async def test_replacement_importance_recomputed(self, plan: TripPlan) -> None:
        unscored = City(
            name="Freiburg", location=LatLng(lat=47.99590, lng=7.85222), population=231_195
        )

        edited = await replace_city(plan, 1, unscored, RouteSegmenter(StubRoutingProvider()))

        assert edited.cities[1].importance == 130
        assert edited.city_stays[1].city.importance == 130
        assert edited.segments[0].to_city.importance == 130

    @pytest.mark.asyncio
    async def test_adjacent_legs_routed_concurrently(self, plan: TripPlan) -> None:
        routing = OverlapRouting()
        await replace_city(plan, 1, KARLSRUHE, RouteSegmenter(routing))
        assert routing.peak == 2


class TestReallocateDays:
    def test_extends_trip(self, plan: TripPlan) -> None:
        edited = reallocate_days(plan, {1: 3})

        assert [s.days for s in edited.city_stays] == [0, 3, 5]
        assert [(s.start_day, s.end_day) for s in edited.city_stays] == [(0, 0), (1, 3), (4, 8)]
        assert edited.total_days == 8
        assert edited.start_date == plan.start_date
        assert edited.end_date == plan.start_date + timedelta(days=7)

    def test_shortens_trip(self, plan: TripPlan) -> None:
        edited = reallocate_days(plan, {2: 2})
        assert edited.total_days == 3
        assert edited.end_date == date(2025, 6, 3)

    def test_origin_must_stay_empty(self, plan: TripPlan) -> None:
        with pytest.raises(ValueError, match="origin"):
            reallocate_days(plan, {0: 1})

    @pytest.mark.parametrize("overrides", [{5: 1}, {1: -1}])
    def test_rejects_bad_overrides(self, plan: TripPlan, overrides: dict[int, int]) -> None:
        with pytest.raises(ValueError):
            reallocate_days(plan, overrides)
