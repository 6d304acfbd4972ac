"""Hybrid store search: result cache, then database, then Google Places.

External results are cached and written back into the database so the next
identical search is served locally.
"""

import asyncio
from datetime import datetime, timezone
from typing import Optional

from store_locator.db.schemas.search import SearchResult, SyncOutcome
from store_locator.db.schemas.store import StoreData
from store_locator.services.places import GooglePlacesClient, PlaceDetails, PlaceSummary
from store_locator.services.result_cache import CacheKey, ResultCache, make_cache_key
from store_locator.services.store_repository import StoreRepository
from store_locator.utils.categories import map_google_types
from store_locator.utils.logging import get_logger

GOOGLE_SYNC_CREATOR = "google_api_sync"

logger = get_logger()


def extract_country(address: str) -> str:
    parts = [part.strip() for part in (address or "").split(",")]
    return parts[-1] if parts and parts[-1] else "Unknown"


def describe_place(place: PlaceSummary, details: PlaceDetails) -> str:
    description = f"{place.name} located at {place.formatted_address}"
    if place.rating:
        description += f". Rated {place.rating}/5 stars"
    if details.opening_hours and details.opening_hours.open_now is not None:
        description += (
            ". Currently open" if details.opening_hours.open_now else ". Currently closed"
        )
    return description


def format_hours(details: PlaceDetails) -> str:
    if details.opening_hours is None:
        return "Hours not available"
    if details.opening_hours.open_now is not None:
        return "Open now" if details.opening_hours.open_now else "Closed now"
    return "Hours available"


def place_to_store(
    place: PlaceSummary, details: PlaceDetails, category: Optional[str] = None
) -> StoreData:
    return StoreData(
        store_name=place.name,
        store_type=map_google_types(place.types, category),
        address=place.formatted_address,
        country=extract_country(place.formatted_address),
        coordinates=place.coordinates,
        phone=details.formatted_phone_number,
        website=details.website,
        description=describe_place(place, details),
        hours=format_hours(details),
        rating=place.rating,
        tags=list(place.types),
        source="google_api",
        google_place_id=place.place_id,
        last_updated=datetime.now(timezone.utc),
    )


class SearchOrchestrator:
    """Resolve a search from the cheapest source that has an answer.

    The chain is strictly ordered and stops at the first non-empty source:

    1. the result cache (an empty cached list still counts as a hit);
    2. the store database, whose failures are logged and treated as empty;
    3. Google Places, whose failures propagate since nothing is left to try.

    Places results are cached, then written back to the database one task
    per store under a concurrency bound. A failed store is logged and
    reported in ``sync_outcomes`` without failing the search, and
    ``synced_to_database`` is true for every Places result once write-back
    has run. Concurrent misses on the same normalized key share one held
    resolution task; cancelling one caller leaves the others waiting on it.
    """

    def __init__(
        self,
        cache: ResultCache,
        stores: StoreRepository,
        places: GooglePlacesClient,
        search_radius: int = 5000,
        match_radius_meters: float = 100.0,
        write_back_concurrency: int = 5,
        database_timeout: float = 5.0,
    ):
        self._cache = cache
        self._stores = stores
        self._places = places
        self._search_radius = search_radius
        self._match_radius_meters = match_radius_meters
        self._write_back_concurrency = max(1, write_back_concurrency)
        self._database_timeout = database_timeout
        self._in_flight: dict[CacheKey, asyncio.Task] = {}
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def cache(self) -> ResultCache:
        return self._cache

    async def search_stores_with_fallback(
        self, query: str, location: str, category: Optional[str] = None
    ) -> SearchResult:
        cached = self._cache.get(query, location, category)
        if cached is not None:
            logger.info(f"Cache hit for '{query}' in '{location}'")
            return SearchResult(
                stores=cached, source="cache", cached=True, synced_to_database=False
            )

        key = make_cache_key(query, location, category)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._resolve_miss(query, location, category))
            self._in_flight[key] = task
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
            task.add_done_callback(lambda done: self._forget_in_flight(key, done))
        else:
            logger.debug(f"Joining in-flight search for {key}")

        # Cancelling one caller must not cancel the shared resolution
        return await asyncio.shield(task)

    def _forget_in_flight(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Mark the error retrieved when every caller has gone away
            task.exception()

    async def _resolve_miss(
        self, query: str, location: str, category: Optional[str]
    ) -> SearchResult:
        database_results = await self._search_database(query, location, category)
        if database_results:
            logger.info(
                f"Database hit: {len(database_results)} stores for '{query}' in '{location}'"
            )
            self._cache.set(query, location, database_results, category)
            return SearchResult(
                stores=database_results,
                source="database",
                cached=False,
                synced_to_database=False,
            )

        logger.info(f"Database empty for '{query}' in '{location}': falling back to Google Places")
        external_results = await self._search_places(query, location, category)
        if not external_results:
            return SearchResult(
                stores=[], source="database", cached=False, synced_to_database=False
            )

        self._cache.set(query, location, external_results, category)
        outcomes = await self._write_back_shielded(external_results)
        synced = [outcome for outcome in outcomes if outcome.succeeded]
        logger.info(
            f"Synced {len(synced)}/{len(outcomes)} stores from Google Places to database"
        )
        return SearchResult(
            stores=external_results,
            source="google_api",
            cached=True,
            synced_to_database=True,
            sync_outcomes=outcomes,
        )

    async def _search_database(
        self, query: str, location: str, category: Optional[str]
    ) -> list[StoreData]:
        try:
            return await asyncio.wait_for(
                self._stores.search(query=query, location=location, category=category),
                timeout=self._database_timeout,
            )
        except Exception as e:
            logger.warning(f"Database search failed, treating as empty: {e!r}")
            return []

    async def _search_places(
        self, query: str, location: str, category: Optional[str]
    ) -> list[StoreData]:
        places = await self._places.search_places(query, location, self._search_radius)
        if not places:
            return []
        details = await asyncio.gather(
            *(self._places.get_place_details(place.place_id) for place in places)
        )
        return [
            place_to_store(place, place_details, category)
            for place, place_details in zip(places, details)
        ]

    async def _write_back_shielded(self, stores: list[StoreData]) -> list[SyncOutcome]:
        # The write-back finishes even if the caller goes away mid-search
        task = asyncio.create_task(self._write_back(stores))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return await asyncio.shield(task)

    async def _write_back(self, stores: list[StoreData]) -> list[SyncOutcome]:
        semaphore = asyncio.Semaphore(self._write_back_concurrency)

        async def sync_with_limit(store: StoreData) -> SyncOutcome:
            async with semaphore:
                return await self._sync_store(store)

        return list(await asyncio.gather(*(sync_with_limit(store) for store in stores)))

    async def _sync_store(self, store: StoreData) -> SyncOutcome:
        try:
            existing = await self._find_existing(store)
            if existing is None:
                created = await self._stores.create(store, created_by=GOOGLE_SYNC_CREATOR)
                logger.debug(f"Created store: {store.store_name}")
                return SyncOutcome(
                    store_name=store.store_name,
                    google_place_id=store.google_place_id,
                    action="created",
                    store_id=created.id,
                )

            updated = await self._stores.update(existing.id, store)
            logger.debug(f"Updated store: {store.store_name}")
            return SyncOutcome(
                store_name=store.store_name,
                google_place_id=store.google_place_id,
                action="updated",
                store_id=updated.id,
            )
        except Exception as e:
            logger.warning(f"Failed to sync store {store.store_name}: {e!r}")
            return SyncOutcome(
                store_name=store.store_name,
                google_place_id=store.google_place_id,
                action="failed",
                error=str(e) or type(e).__name__,
            )

    async def _find_existing(self, store: StoreData) -> Optional[StoreData]:
        if store.google_place_id:
            existing = await self._stores.find_by_place_id(store.google_place_id)
            if existing is not None:
                return existing
        if store.coordinates is not None:
            return await self._stores.find_near(
                store.coordinates.lat,
                store.coordinates.lng,
                self._match_radius_meters,
            )
        return None

    def get_cache_stats(self) -> dict:
        return self._cache.get_stats()

    def get_popular_searches(self, limit: int = 10) -> list[dict]:
        return self._cache.get_popular_searches(limit)

    def clear_cache(self) -> None:
        self._cache.clear()

    async def drain(self) -> None:
        """Wait for resolutions and write-backs still running after their callers left."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
