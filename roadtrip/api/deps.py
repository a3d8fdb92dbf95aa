"""Composition root: builds providers and the planner from settings.

The only place settings are read. Route handlers receive the pieces
through FastAPI dependencies, so tests can swap them with
app.dependency_overrides.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from roadtrip.adapters.fixtures import (
    FixtureCityDataset,
    FixtureGeocoder,
    StubPlacesProvider,
    StubRoutingProvider,
)
from roadtrip.adapters.google_maps import (
    GoogleDirectionsProvider,
    GoogleGeocoder,
    GooglePlacesProvider,
)
from roadtrip.adapters.opendatasoft import OpenDataSoftCityDataset
from roadtrip.adapters.protocols import (
    CityDatasetProvider,
    Geocoder,
    PlacesProvider,
    RoutingProvider,
)
from roadtrip.config import Settings, get_settings
from roadtrip.planning.catalog import CityCatalog
from roadtrip.planning.corridor import CorridorDiscovery
from roadtrip.planning.orchestrator import TripPlanningOrchestrator
from roadtrip.planning.segmenter import RouteSegmenter
from roadtrip.tools.executor import ToolExecutor
from roadtrip.utils.logging import StructuredToolLogger
from roadtrip.utils.metrics import PrometheusToolMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Providers:
    geocoder: Geocoder
    places: PlacesProvider
    routing: RoutingProvider
    dataset: CityDatasetProvider


def build_providers(settings: Settings) -> Providers:
    """Stub or live provider set, per settings.provider_mode.

    Raises:
        ValueError: Live mode without a Google Maps API key
    """
    if settings.provider_mode == "stub":
        return Providers(
            geocoder=FixtureGeocoder(),
            places=StubPlacesProvider(),
            routing=StubRoutingProvider(),
            dataset=FixtureCityDataset(),
        )

    if not settings.google_maps_api_key:
        raise ValueError("GOOGLE_MAPS_API_KEY is required when PROVIDER_MODE=live")

    timeout_s = settings.provider_timeout_ms / 1000
    key = settings.google_maps_api_key
    return Providers(
        geocoder=GoogleGeocoder(key, timeout_s=timeout_s),
        places=GooglePlacesProvider(key, timeout_s=timeout_s),
        routing=GoogleDirectionsProvider(
            key, region=settings.directions_region, timeout_s=timeout_s
        ),
        dataset=OpenDataSoftCityDataset(
            api_key=settings.opendatasoft_api_key,
            base_url=settings.opendatasoft_base_url,
            dataset=settings.opendatasoft_dataset,
            timeout_s=timeout_s,
        ),
    )


def build_executor(settings: Settings) -> ToolExecutor:
    return ToolExecutor(
        metrics=PrometheusToolMetrics(),
        logger=StructuredToolLogger(),
        default_timeout_ms=settings.provider_timeout_ms,
    )


def build_catalog(settings: Settings, providers: Providers, executor: ToolExecutor) -> CityCatalog:
    return CityCatalog(
        providers.dataset,
        providers.places,
        region=settings.catalog_region,
        executor=executor,
        fanout_cap=settings.fanout_cap,
    )


def build_orchestrator(
    settings: Settings,
    providers: Providers,
    catalog: CityCatalog,
    executor: ToolExecutor,
) -> TripPlanningOrchestrator:
    segmenter = RouteSegmenter(providers.routing, executor, fanout_cap=settings.fanout_cap)
    return TripPlanningOrchestrator(
        providers.geocoder, CorridorDiscovery(catalog), segmenter, executor
    )


@lru_cache
def get_providers() -> Providers:
    settings = get_settings()
    logger.info("Using %s providers", settings.provider_mode)
    return build_providers(settings)


@lru_cache
def get_executor() -> ToolExecutor:
    return build_executor(get_settings())


@lru_cache
def get_catalog() -> CityCatalog:
    """Process-wide catalog; its dataset cache lives as long as the app."""
    return build_catalog(get_settings(), get_providers(), get_executor())


@lru_cache
def get_orchestrator() -> TripPlanningOrchestrator:
    return build_orchestrator(get_settings(), get_providers(), get_catalog(), get_executor())
