"""HTTP client for the Google Places and Geocoding APIs."""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field

from store_locator.core.exceptions.errors import (
    ConfigurationError,
    ProviderError,
    TransientIOError,
)
from store_locator.db.schemas.store import Coordinates
from store_locator.utils.logging import get_logger

PLACES_BASE_URL = "https://maps.googleapis.com/maps/api/place"
GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DETAIL_FIELDS = (
    "name,formatted_address,formatted_phone_number,website,opening_hours,"
    "rating,user_ratings_total,price_level,types"
)
OK_STATUSES = {"OK", "ZERO_RESULTS"}

logger = get_logger()


class OpeningHours(BaseModel):
    open_now: Optional[bool] = None
    weekday_text: list[str] = Field(default_factory=list)


class PlaceSummary(BaseModel):
    place_id: str
    name: str
    formatted_address: str = ""
    coordinates: Optional[Coordinates] = None
    types: list[str] = Field(default_factory=list)
    rating: Optional[float] = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "PlaceSummary":
        location = (raw.get("geometry") or {}).get("location") or {}
        coordinates = None
        if "lat" in location and "lng" in location:
            coordinates = Coordinates(lat=location["lat"], lng=location["lng"])
        return cls(
            place_id=raw["place_id"],
            name=raw.get("name", ""),
            formatted_address=raw.get("formatted_address", ""),
            coordinates=coordinates,
            types=raw.get("types") or [],
            rating=raw.get("rating"),
        )


class PlaceDetails(BaseModel):
    formatted_phone_number: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[OpeningHours] = None


class GooglePlacesClient:
    """Async wrapper around the Places text search, details and geocoding calls.

    Every call is bounded by ``timeout``. Failures surface as
    ConfigurationError (no API key), TransientIOError (network or timeout)
    or ProviderError (HTTP error or a non-OK provider status).
    """

    def __init__(
        self,
        api_key: Optional[str],
        timeout: float = 5.0,
        default_radius: int = 5000,
        base_url: str = PLACES_BASE_URL,
        geocode_url: str = GEOCODE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key or ""
        self._timeout = timeout
        self._default_radius = default_radius
        self._base_url = base_url.rstrip("/")
        self._geocode_url = geocode_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self._api_key:
            logger.warning(
                "Google Places API key not found. Set GOOGLE_PLACES_API_KEY to enable external search."
            )

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self.is_configured():
            raise ConfigurationError()

        client = self._get_client()
        try:
            response = await client.get(url, params={**params, "key": self._api_key})
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise TransientIOError(f"Google Places request timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Google Places returned HTTP {e.response.status_code}",
                provider_status=str(e.response.status_code),
            ) from e
        except httpx.TransportError as e:
            raise TransientIOError(f"Google Places unreachable: {e}") from e
        except ValueError as e:
            raise ProviderError("Google Places returned malformed JSON") from e

    async def geocode(self, location: str) -> Optional[Coordinates]:
        """Coordinates for a free-text location, or None if the provider finds none."""
        data = await self._get_json(self._geocode_url, {"address": location})
        status = data.get("status")
        if status == "OK" and data.get("results"):
            point = data["results"][0]["geometry"]["location"]
            return Coordinates(lat=point["lat"], lng=point["lng"])
        if status not in OK_STATUSES:
            raise ProviderError(
                f"Geocoding error: {status}", provider_status=status
            )
        return None

    async def search_places(
        self, query: str, location: str, radius: Optional[int] = None
    ) -> list[PlaceSummary]:
        if not self.is_configured():
            raise ConfigurationError()

        radius = radius or self._default_radius
        params: dict[str, Any] = {"query": query}
        coordinates = await self.geocode(location) if location else None
        if coordinates is not None:
            params["location"] = f"{coordinates.lat},{coordinates.lng}"
            params["radius"] = radius
        elif location:
            logger.info(f"Could not geocode '{location}', searching by text only")
            params["query"] = f"{query} in {location}"

        data = await self._get_json(f"{self._base_url}/textsearch/json", params)
        status = data.get("status")
        if status not in OK_STATUSES:
            raise ProviderError(
                f"Google Places API error: {status}", provider_status=status
            )

        places = [PlaceSummary.from_api(raw) for raw in data.get("results") or []]
        logger.debug(f"Google Places text search '{params['query']}' -> {len(places)}")
        return places

    async def get_place_details(self, place_id: str) -> PlaceDetails:
        data = await self._get_json(
            f"{self._base_url}/details/json",
            {"place_id": place_id, "fields": DETAIL_FIELDS},
        )
        status = data.get("status")
        if status != "OK":
            raise ProviderError(
                f"Google Places API error: {status}", provider_status=status
            )
        return PlaceDetails.model_validate(data.get("result") or {})
