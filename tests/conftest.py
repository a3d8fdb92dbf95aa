"""Shared pytest fixtures for all test suites."""

from datetime import date

import pytest

from roadtrip.adapters.fixtures import (
    FixtureCityDataset,
    FixtureGeocoder,
    StubPlacesProvider,
    StubRoutingProvider,
)
from roadtrip.models import City, LatLng, TripRequest
from roadtrip.planning.catalog import CityCatalog
from roadtrip.planning.corridor import CorridorDiscovery
from roadtrip.planning.orchestrator import TripPlanningOrchestrator
from roadtrip.planning.segmenter import RouteSegmenter

MUNICH = LatLng(lat=48.1351, lng=11.5820)
PARIS = LatLng(lat=48.8566, lng=2.3522)
STRASBOURG = LatLng(lat=48.5734, lng=7.7521)


@pytest.fixture
def munich() -> City:
    return City(name="Munich", location=MUNICH, importance=0)


@pytest.fixture
def paris() -> City:
    return City(name="Paris", location=PARIS, importance=250)


@pytest.fixture
def strasbourg() -> City:
    return City(
        name="Strasbourg",
        location=STRASBOURG,
        population=280_000,
        country="France",
        importance=130,
    )


@pytest.fixture
def munich_paris_request() -> TripRequest:
    return TripRequest(
        origin="Munich, Germany",
        destination="Paris, France",
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 5),
    )


@pytest.fixture
def stub_catalog() -> CityCatalog:
    """Catalog over the bundled fixture dataset, no places localities."""
    return CityCatalog(FixtureCityDataset(), StubPlacesProvider())


@pytest.fixture
def stub_orchestrator(stub_catalog: CityCatalog) -> TripPlanningOrchestrator:
    """Full pipeline over fixture providers."""
    return TripPlanningOrchestrator(
        FixtureGeocoder(),
        CorridorDiscovery(stub_catalog),
        RouteSegmenter(StubRoutingProvider()),
    )
