"""City catalog: the open city dataset plus supplementary places-search localities.

The dataset is paged (population descending) until a short page comes
back, then cached on the catalog instance for its lifetime. Concurrent
first-time callers wait behind a single in-flight fetch.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence

from roadtrip.adapters.protocols import CityDatasetProvider, PlacesProvider
from roadtrip.models.geo import LatLng
from roadtrip.models.providers import PlaceResult
from roadtrip.models.trip import City
from roadtrip.planning.errors import CatalogUnavailable
from roadtrip.planning.geometry import haversine_distance
from roadtrip.tools.executor import CancelToken, ToolCancelledError, ToolContext, ToolExecutor
from roadtrip.utils.metrics import catalog_cache_hits_total

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 10
MIN_POPULATION = 100_000
DEFAULT_REGION = "Europe/"


def merge_unique(*sources: Iterable[City]) -> list[City]:
    """Concatenate sources, dropping case-insensitive name duplicates (first seen wins)."""
    seen: set[str] = set()
    merged: list[City] = []
    for source in sources:
        for city in source:
            key = city.name.casefold()
            if key in seen:
                continue
            seen.add(key)
            merged.append(city)
    return merged


def city_from_place(place: PlaceResult) -> City:
    """Places results carry no population or country."""
    return City(name=place.name, location=place.location)


class CityCatalog:
    """Read-through cache over the city dataset with an optional places supplement."""

    def __init__(
        self,
        dataset: CityDatasetProvider | None,
        places: PlacesProvider | None = None,
        *,
        region: str = DEFAULT_REGION,
        executor: ToolExecutor | None = None,
        timeout_ms: int | None = None,
        fanout_cap: int = 4,
        trace_id: str = "catalog",
    ) -> None:
        """Initialize catalog.

        Args:
            dataset: Paged city dataset (None disables the dataset source)
            places: Places provider for supplementary localities (optional)
            region: Dataset region filter (timezone prefix, e.g. "Europe/")
            executor: Provider call executor (optional, defaults to a bare executor)
            timeout_ms: Per-call timeout override
            fanout_cap: Max concurrent places searches
            trace_id: Trace id attached to provider call logs
        """
        self._dataset = dataset
        self._places = places
        self.region = region
        self._executor = executor or ToolExecutor()
        self._timeout_ms = timeout_ms
        self._fanout_cap = fanout_cap
        self._trace_id = trace_id
        self._cache: list[City] | None = None
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    def _fetch_lock(self) -> asyncio.Lock:
        """Lock for the running loop; asyncio primitives cannot cross event loops."""
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    @property
    def is_cached(self) -> bool:
        return self._cache is not None

    async def fetch_cities(self, cancel_token: CancelToken | None = None) -> list[City]:
        """All dataset cities at or above MIN_POPULATION in the region, importance 0.

        Raises:
            CatalogUnavailable: No dataset configured, or the dataset fetch failed
        """
        if self._cache is not None:
            catalog_cache_hits_total.inc()
            logger.debug("Serving %d cities from catalog cache", len(self._cache))
            return list(self._cache)

        async with self._fetch_lock():
            if self._cache is None:
                self._cache = await self._fetch_all_pages(cancel_token)
            else:
                catalog_cache_hits_total.inc()
        return list(self._cache)

    async def _fetch_all_pages(self, cancel_token: CancelToken | None) -> list[City]:
        if self._dataset is None:
            raise CatalogUnavailable("no city dataset configured")
        dataset = self._dataset

        cities: list[City] = []
        for page_number in range(MAX_PAGES):
            offset = page_number * PAGE_SIZE
            logger.info("Fetching city dataset page (offset %d)", offset)
            try:
                page = await self._executor.execute(
                    ToolContext(trace_id=self._trace_id, tool_name="city_dataset"),
                    lambda offset=offset: dataset.fetch_page(
                        offset=offset,
                        limit=PAGE_SIZE,
                        min_population=MIN_POPULATION,
                        region=self.region,
                    ),
                    timeout_ms=self._timeout_ms,
                    cancel_token=cancel_token,
                )
            except ToolCancelledError:
                raise
            except Exception as e:
                raise CatalogUnavailable(f"city dataset fetch failed: {e}") from e

            cities.extend(c for c in page.cities if c.population >= MIN_POPULATION)
            if page.raw_count < PAGE_SIZE:
                break

        logger.info(
            "Loaded %d cities from dataset",
            len(cities),
            extra={"structured": {"region": self.region, "cities": len(cities)}},
        )
        return cities

    async def fetch_nearby_localities(
        self,
        points: Sequence[LatLng],
        radius_meters: int,
        cancel_token: CancelToken | None = None,
    ) -> list[City]:
        """Places-search localities around each point, searched concurrently.

        Failed points are logged and skipped.

        Raises:
            CatalogUnavailable: No places provider configured, or every search failed
        """
        if self._places is None:
            raise CatalogUnavailable("no places provider configured")
        places = self._places
        semaphore = asyncio.Semaphore(self._fanout_cap)

        async def search(point: LatLng) -> list[PlaceResult] | None:
            async with semaphore:
                try:
                    return await self._executor.execute(
                        ToolContext(trace_id=self._trace_id, tool_name="places_nearby"),
                        lambda: places.nearby_localities(point, radius_meters),
                        timeout_ms=self._timeout_ms,
                        cancel_token=cancel_token,
                    )
                except ToolCancelledError:
                    raise
                except Exception as e:
                    logger.warning(
                        "Places search failed near (%.4f, %.4f): %s", point.lat, point.lng, e
                    )
                    return None

        results = await asyncio.gather(*(search(p) for p in points))
        succeeded = [r for r in results if r is not None]
        if points and not succeeded:
            raise CatalogUnavailable("every places search failed")

        return merge_unique(city_from_place(p) for batch in succeeded for p in batch)

    async def collect(
        self,
        points: Sequence[LatLng],
        radius_meters: int,
        cancel_token: CancelToken | None = None,
        keep: Callable[[City], bool] | None = None,
    ) -> list[City]:
        """Dataset cities merged with localities found around points.

        Each source is narrowed by keep before the two are merged, so a
        same-name city the filter rejects never shadows one it accepts.
        A failing source is tolerated as long as the other one succeeds.

        Raises:
            CatalogUnavailable: Both sources failed (or are not configured)
        """
        failures: list[str] = []

        dataset_cities: list[City] = []
        try:
            dataset_cities = await self.fetch_cities(cancel_token)
        except CatalogUnavailable as e:
            logger.warning("City dataset unavailable, continuing with places search: %s", e)
            failures.append(f"dataset: {e}")

        place_cities: list[City] = []
        if self._places is not None:
            try:
                place_cities = await self.fetch_nearby_localities(
                    points, radius_meters, cancel_token
                )
            except CatalogUnavailable as e:
                logger.warning("Places search unavailable: %s", e)
                failures.append(f"places: {e}")
        else:
            failures.append("places: not configured")

        if len(failures) == 2:
            raise CatalogUnavailable("all city sources failed (" + "; ".join(failures) + ")")

        if keep is not None:
            dataset_cities = [c for c in dataset_cities if keep(c)]
            place_cities = [c for c in place_cities if keep(c)]
        return merge_unique(dataset_cities, place_cities)

    async def search(self, query: str, limit: int = 10) -> list[City]:
        """Dataset cities whose name or country contains query.

        Exact name matches come first, then larger cities.
        """
        needle = query.strip().casefold()
        if not needle:
            return []

        cities = await self.fetch_cities()
        matches = [
            c for c in cities if needle in c.name.casefold() or needle in c.country.casefold()
        ]
        matches.sort(key=lambda c: (c.name.casefold() != needle, -c.population))
        return matches[:limit]

    async def near(
        self,
        center: LatLng,
        max_distance_km: float,
        cancel_token: CancelToken | None = None,
    ) -> list[City]:
        """Cities within max_distance_km of center from every available source."""
        return await self.collect(
            [center],
            int(max_distance_km * 1000),
            cancel_token,
            keep=lambda c: haversine_distance(center, c.location) <= max_distance_km,
        )
