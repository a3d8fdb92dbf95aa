"""Tests for the city catalog: paging, caching, source fallback and search."""

import asyncio

import pytest
from prometheus_client import REGISTRY

from roadtrip.adapters.fixtures import FixtureCityDataset, StubPlacesProvider
from roadtrip.models import DatasetPage, LatLng, PlaceResult, PlaceSuggestion
from roadtrip.planning.catalog import PAGE_SIZE, CityCatalog, city_from_place, merge_unique
from roadtrip.planning.errors import CatalogUnavailable
from roadtrip.tools.executor import CancelToken, ToolCancelledError

STRASBOURG = LatLng(lat=48.58392, lng=7.74553)


def _records(count: int) -> list[dict]:
    return [
        {
            "name": f"Town {i}",
            "coordinates": {"lat": 45.0 + i / 1000, "lon": 5.0},
            "population": 1_000_000 - i,
            "cou_name_en": "France",
            "timezone": "Europe/Paris",
        }
        for i in range(count)
    ]


class FailingDataset:
    async def fetch_page(
        self, *, offset: int, limit: int, min_population: int, region: str
    ) -> DatasetPage:
        raise ConnectionError("dataset down")


class FlakyPlaces:
    """Fails for searches south of 48N."""

    async def nearby_localities(self, center: LatLng, radius_meters: int) -> list[PlaceResult]:
        if center.lat < 48:
            raise ConnectionError("places down")
        return [PlaceResult(name="Northtown", location=center, place_id="n1")]

    async def autocomplete(self, query: str) -> list[PlaceSuggestion]:
        return []


def _cache_hits() -> float:
    return REGISTRY.get_sample_value("catalog_cache_hits_total") or 0.0


class TestFetchCities:
    @pytest.mark.asyncio
    async def test_pages_until_short_page(self) -> None:
        dataset = FixtureCityDataset(_records(2 * PAGE_SIZE + 50))
        catalog = CityCatalog(dataset)

        cities = await catalog.fetch_cities()

        assert len(cities) == 250
        assert dataset.pages_served == 3
        assert cities[0].name == "Town 0"

    @pytest.mark.asyncio
    async def test_filters_population_and_region(self) -> None:
        """Luxembourg (under 100k) and New York (outside Europe) are excluded."""
        cities = await CityCatalog(FixtureCityDataset()).fetch_cities()
        names = {c.name for c in cities}
        assert "Paris" in names
        assert "Luxembourg" not in names
        assert "New York City" not in names
        assert all(c.importance == 0 for c in cities)

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self) -> None:
        dataset = FixtureCityDataset(_records(10))
        catalog = CityCatalog(dataset)
        hits_before = _cache_hits()

        first = await catalog.fetch_cities()
        second = await catalog.fetch_cities()

        assert first == second
        assert dataset.pages_served == 1
        assert catalog.is_cached is True
        assert _cache_hits() == hits_before + 1

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_fetch_once(self) -> None:
        dataset = FixtureCityDataset(_records(10))
        catalog = CityCatalog(dataset)

        results = await asyncio.gather(*(catalog.fetch_cities() for _ in range(5)))

        assert dataset.pages_served == 1
        assert all(r == results[0] for r in results)

    @pytest.mark.asyncio
    async def test_no_dataset_configured(self) -> None:
        with pytest.raises(CatalogUnavailable):
            await CityCatalog(None).fetch_cities()

    @pytest.mark.asyncio
    async def test_dataset_failure_raises_catalog_unavailable(self) -> None:
        catalog = CityCatalog(FailingDataset())
        with pytest.raises(CatalogUnavailable, match="dataset down"):
            await catalog.fetch_cities()
        assert catalog.is_cached is False

    @pytest.mark.asyncio
    async def test_cancelled_token_propagates(self) -> None:
        catalog = CityCatalog(FixtureCityDataset(_records(10)))
        with pytest.raises(ToolCancelledError):
            await catalog.fetch_cities(CancelToken(cancelled=True))


class TestCollect:
    @pytest.mark.asyncio
    async def test_merges_sources_without_duplicates(self) -> None:
        places = StubPlacesProvider(
            localities=[
                PlaceResult(name="strasbourg", location=STRASBOURG, place_id="dup"),
                PlaceResult(name="Kehl", location=LatLng(lat=48.5724, lng=7.8156), place_id="k1"),
            ]
        )
        catalog = CityCatalog(FixtureCityDataset(), places)

        cities = await catalog.collect([STRASBOURG], 20_000)

        names = [c.name for c in cities]
        assert names.count("Strasbourg") == 1
        assert "strasbourg" not in names
        assert "Kehl" in names

    @pytest.mark.asyncio
    async def test_dataset_failure_tolerated_when_places_succeed(self) -> None:
        catalog = CityCatalog(FailingDataset(), FlakyPlaces())
        cities = await catalog.collect([LatLng(lat=50, lng=5)], 10_000)
        assert [c.name for c in cities] == ["Northtown"]

    @pytest.mark.asyncio
    async def test_partial_places_failures_skipped(self) -> None:
        catalog = CityCatalog(None, FlakyPlaces())
        cities = await catalog.fetch_nearby_localities(
            [LatLng(lat=45, lng=5), LatLng(lat=50, lng=5)], 10_000
        )
        assert [c.name for c in cities] == ["Northtown"]

    @pytest.mark.asyncio
    async def test_all_sources_failing_raises(self) -> None:
        catalog = CityCatalog(FailingDataset(), FlakyPlaces())
        with pytest.raises(CatalogUnavailable, match="all city sources failed"):
            await catalog.collect([LatLng(lat=45, lng=5)], 10_000)

    @pytest.mark.asyncio
    async def test_dataset_failure_without_places_raises(self) -> None:
        with pytest.raises(CatalogUnavailable):
            await CityCatalog(FailingDataset()).collect([STRASBOURG], 10_000)


class TestSearchAndNear:
    @pytest.mark.asyncio
    async def test_exact_name_first(self) -> None:
        catalog = CityCatalog(FixtureCityDataset())
        results = await catalog.search("paris")
        assert results[0].name == "Paris"

    @pytest.mark.asyncio
    async def test_country_match_ordered_by_population(self) -> None:
        catalog = CityCatalog(FixtureCityDataset())
        results = await catalog.search("Germany", limit=3)
        assert [c.name for c in results] == ["Berlin", "Hamburg", "Munich"]

    @pytest.mark.asyncio
    async def test_blank_query_returns_nothing(self) -> None:
        assert await CityCatalog(FixtureCityDataset()).search("   ") == []

    @pytest.mark.asyncio
    async def test_near_limits_radius(self) -> None:
        catalog = CityCatalog(FixtureCityDataset(), StubPlacesProvider())
        nearby = await catalog.near(STRASBOURG, 100)
        names = {c.name for c in nearby}
        assert "Strasbourg" in names
        assert "Karlsruhe" in names
        assert "Paris" not in names


def test_merge_unique_first_seen_wins() -> None:
    first = PlaceResult(name="Ulm", location=STRASBOURG, place_id="a")
    shouting = first.model_copy(update={"name": "ULM"})

    merged = merge_unique([city_from_place(first)], [city_from_place(shouting)])
    assert [c.name for c in merged] == ["Ulm"]


class SlowPlaces(StubPlacesProvider):
    """Yields to the loop on every search so concurrent searches queue on the fan-out cap."""

    async def nearby_localities(self, center: LatLng, radius_meters: int) -> list[PlaceResult]:
        await asyncio.sleep(0.001)
        return await super().nearby_localities(center, radius_meters)


def test_catalog_reusable_across_event_loops() -> None:
    """A process-wide catalog serves runs on successive event loops."""
    catalog = CityCatalog(FixtureCityDataset(), SlowPlaces(), fanout_cap=2)
    points = [LatLng(lat=48.0 + i / 10, lng=8.0) for i in range(6)]

    for _ in range(2):
        cities = asyncio.run(catalog.collect(points, 10_000))
        assert cities


class TestSourceFiltering:
    @pytest.mark.asyncio
    async def test_filter_applied_before_merging(self) -> None:
        """A rejected dataset city does not shadow an accepted same-name locality."""
        dataset = FixtureCityDataset(
            [
                {
                    "name": "Kehl",
                    "coordinates": {"lat": 40.4, "lon": -3.7},
                    "population": 150_000,
                    "cou_name_en": "Spain",
                    "timezone": "Europe/Madrid",
                }
            ]
        )
        kehl = LatLng(lat=48.5724, lng=7.8156)
        places = StubPlacesProvider(
            localities=[PlaceResult(name="Kehl", location=kehl, place_id="k1")]
        )
        catalog = CityCatalog(dataset, places)

        nearby = await catalog.near(STRASBOURG, 50)

        assert [(c.name, c.location) for c in nearby] == [("Kehl", kehl)]
