import asyncio
from contextlib import asynccontextmanager, suppress
from fastapi import FastAPI
from store_locator.core.config import settings
from store_locator.db.session import SessionLocal, engine, init_db
from store_locator.services.places import GooglePlacesClient
from store_locator.services.result_cache import ResultCache, run_periodic_cleanup
from store_locator.services.search_orchestrator import SearchOrchestrator
from store_locator.services.store_repository import StoreRepository
from store_locator.utils.logging import get_logger


def build_search_stack(places_client: GooglePlacesClient) -> dict:
    """Construct the cache, repository and orchestrator from settings."""
    result_cache = ResultCache(
        default_ttl=settings.CACHE_TTL_SECONDS,
        max_entries=settings.CACHE_MAX_ENTRIES,
    )
    store_repository = StoreRepository(SessionLocal)
    orchestrator = SearchOrchestrator(
        cache=result_cache,
        stores=store_repository,
        places=places_client,
        search_radius=settings.PLACES_SEARCH_RADIUS_METERS,
        match_radius_meters=settings.SYNC_MATCH_RADIUS_METERS,
        write_back_concurrency=settings.WRITE_BACK_CONCURRENCY,
        database_timeout=settings.DATABASE_TIMEOUT_SECONDS,
    )
    return {
        "result_cache": result_cache,
        "store_repository": store_repository,
        "search_orchestrator": orchestrator,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger(startup=True)

    # Startup
    await init_db()
    places_client = GooglePlacesClient(
        api_key=settings.GOOGLE_PLACES_API_KEY,
        timeout=settings.PLACES_TIMEOUT_SECONDS,
        default_radius=settings.PLACES_SEARCH_RADIUS_METERS,
    )
    app.state.places_client = places_client
    for name, component in build_search_stack(places_client).items():
        setattr(app.state, name, component)

    cleanup_task = asyncio.create_task(
        run_periodic_cleanup(
            app.state.result_cache, settings.CACHE_CLEANUP_INTERVAL_SECONDS
        )
    )
    logger.info(f"Startup: {app.title} v{app.version} starting...")
    yield
    # Shutdown
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task
    await app.state.search_orchestrator.drain()
    await places_client.close()
    await engine.dispose()
    logger.info("Shutdown: App shutting down...")
