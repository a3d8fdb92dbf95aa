"""City dataset adapter using the OpenDataSoft Explore API (GeoNames cities)."""

from typing import Any

import httpx

from roadtrip.models.geo import LatLng
from roadtrip.models.providers import DatasetPage
from roadtrip.models.trip import City

DEFAULT_BASE_URL = "https://data.opendatasoft.com/api/explore/v2.1"
DEFAULT_DATASET = "geonames-all-cities-with-a-population-1000@public"
SELECT_FIELDS = "name,ascii_name,coordinates,population,cou_name_en,timezone"


def parse_record(record: dict[str, Any]) -> City | None:
    """Build an unscored City from one dataset record, None if unusable."""
    coordinates = record.get("coordinates")
    name = record.get("name") or record.get("ascii_name")
    if not coordinates or not name:
        return None
    if coordinates.get("lat") is None or coordinates.get("lon") is None:
        return None
    return City(
        name=name,
        location=LatLng(lat=coordinates["lat"], lng=coordinates["lon"]),
        population=record.get("population") or 0,
        country=record.get("cou_name_en") or "",
    )


class OpenDataSoftCityDataset:
    """Reads the GeoNames cities dataset page by page."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = DEFAULT_BASE_URL,
        dataset: str = DEFAULT_DATASET,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 4.0,
    ) -> None:
        """Initialize adapter.

        Args:
            api_key: Optional OpenDataSoft API key (sent as Apikey authorization)
            base_url: Explore API base URL
            dataset: Dataset identifier
            client: Optional httpx client (for testing with mocks)
            timeout_s: Timeout for clients this adapter creates
        """
        self.api_key = api_key
        self.records_url = f"{base_url}/catalog/datasets/{dataset}/records"
        self._client = client
        self._timeout_s = timeout_s

    def build_params(
        self, *, offset: int, limit: int, min_population: int, region: str
    ) -> dict[str, str]:
        """Query parameters for one page."""
        return {
            "select": SELECT_FIELDS,
            "where": f"population >= {min_population} AND timezone LIKE '{region}%'",
            "order_by": "population DESC",
            "limit": str(limit),
            "offset": str(offset),
        }

    async def fetch_page(
        self,
        *,
        offset: int,
        limit: int,
        min_population: int,
        region: str,
    ) -> DatasetPage:
        """Fetch one page of the dataset.

        Raises:
            httpx.HTTPError: On network or HTTP errors
            ValueError: On a malformed response body
        """
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Apikey {self.api_key}"
        params = self.build_params(
            offset=offset, limit=limit, min_population=min_population, region=region
        )

        client = self._client
        close_client = False
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout_s)
            close_client = True

        try:
            response = await client.get(self.records_url, params=params, headers=headers)
            response.raise_for_status()
            data = response.json()
        finally:
            if close_client:
                await client.aclose()

        results = data.get("results")
        if not isinstance(results, list):
            raise ValueError("invalid OpenDataSoft response: missing results list")

        cities = [city for city in (parse_record(r) for r in results) if city is not None]
        return DatasetPage(cities=cities, raw_count=len(results))
