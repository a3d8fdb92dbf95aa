"""Google Maps Platform adapters: Geocoding, Places and Directions (web services).

All three share one request helper; each accepts an optional httpx client
so tests can inject httpx.MockTransport.
"""

from typing import Any

import httpx

from roadtrip.models.geo import LatLng
from roadtrip.models.providers import DirectionsResult, PlaceResult, PlaceSuggestion
from roadtrip.planning.errors import GeocodeError, PlacesError, RouteError

GOOGLE_MAPS_BASE_URL = "https://maps.googleapis.com/maps/api"


def _latlng_param(point: LatLng) -> str:
    return f"{point.lat},{point.lng}"


class _GoogleMapsClient:
    """Shared GET-JSON plumbing for the Maps web service APIs."""

    def __init__(
        self,
        api_key: str,
        base_url: str = GOOGLE_MAPS_BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 4.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url
        self._client = client
        self._timeout_s = timeout_s

    async def _get_json(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """GET {base_url}/{path} with the API key appended.

        Raises:
            httpx.HTTPError: On network or HTTP errors
        """
        client = self._client
        close_client = False
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout_s)
            close_client = True

        try:
            response = await client.get(
                f"{self.base_url}/{path}", params={**params, "key": self.api_key}
            )
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            return data
        finally:
            if close_client:
                await client.aclose()


class GoogleGeocoder(_GoogleMapsClient):
    """Geocoding API client."""

    async def geocode(self, address: str) -> LatLng:
        """Resolve address to the first result's coordinates.

        Raises:
            GeocodeError: Non-OK status or no results
        """
        data = await self._get_json("geocode/json", {"address": address})
        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results:
            raise GeocodeError(f"Geocoding failed for {address!r}: {status}")

        location = results[0]["geometry"]["location"]
        return LatLng(lat=location["lat"], lng=location["lng"])


class GooglePlacesProvider(_GoogleMapsClient):
    """Places API client (Nearby Search and Autocomplete)."""

    async def nearby_localities(self, center: LatLng, radius_meters: int) -> list[PlaceResult]:
        """Localities within radius_meters of center.

        Raises:
            PlacesError: Status other than OK / ZERO_RESULTS
        """
        data = await self._get_json(
            "place/nearbysearch/json",
            {
                "location": _latlng_param(center),
                "radius": str(radius_meters),
                "type": "locality",
            },
        )
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise PlacesError(f"Nearby search failed: {status}")

        places = []
        for item in data.get("results", []):
            location = (item.get("geometry") or {}).get("location")
            if not item.get("name") or not location:
                continue
            places.append(
                PlaceResult(
                    name=item["name"],
                    location=LatLng(lat=location["lat"], lng=location["lng"]),
                    place_id=item.get("place_id", ""),
                )
            )
        return places

    async def autocomplete(self, query: str) -> list[PlaceSuggestion]:
        """City predictions for a partial query."""
        data = await self._get_json(
            "place/autocomplete/json", {"input": query, "types": "(cities)"}
        )
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            raise PlacesError(f"Autocomplete failed: {status}")

        return [
            PlaceSuggestion(label=p["description"], place_id=p.get("place_id", ""))
            for p in data.get("predictions", [])
            if p.get("description")
        ]


class GoogleDirectionsProvider(_GoogleMapsClient):
    """Directions API client (driving only)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = GOOGLE_MAPS_BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 4.0,
        region: str = "eu",
    ) -> None:
        super().__init__(api_key, base_url=base_url, client=client, timeout_s=timeout_s)
        self.region = region

    async def route(self, origin: LatLng, destination: LatLng) -> DirectionsResult:
        """Driving route from origin to destination; the full response is kept as raw.

        Raises:
            RouteError: Non-OK status or a response without legs
        """
        data = await self._get_json(
            "directions/json",
            {
                "origin": _latlng_param(origin),
                "destination": _latlng_param(destination),
                "mode": "driving",
                "region": self.region,
            },
        )
        status = data.get("status")
        if status != "OK":
            raise RouteError(f"Directions request failed: {status}")

        try:
            leg = data["routes"][0]["legs"][0]
            distance = leg["distance"]["value"]
            duration = leg["duration"]["value"]
        except (KeyError, IndexError) as e:
            raise RouteError("Directions response has no route legs") from e

        return DirectionsResult(distance_meters=distance, duration_seconds=duration, raw=data)
