from datetime import datetime, timedelta, timezone
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select

from store_locator.core.dependencies import (
    DBDependency,
    OrchestratorDependency,
    StoreRepositoryDependency,
    require_admin,
)
from store_locator.core.responses import send_success
from store_locator.db.models.search_analytics import SearchAnalytics
from store_locator.utils.logging import get_logger

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)]
)

logger = get_logger()

AnalyticsPeriod = Literal["7d", "30d", "90d", "1y"]

PERIODS: dict[str, timedelta] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
}


@router.get("/cache")
async def cache_stats(orchestrator: OrchestratorDependency):
    return send_success(data=orchestrator.get_cache_stats())


@router.get("/cache/popular")
async def popular_searches(
    orchestrator: OrchestratorDependency,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    return send_success(data={"searches": orchestrator.get_popular_searches(limit)})


@router.post("/cache/clear")
async def clear_cache(orchestrator: OrchestratorDependency):
    orchestrator.clear_cache()
    logger.info("Search result cache cleared by admin")
    return send_success(message="Cache cleared successfully")


@router.post("/cache/cleanup")
async def cleanup_cache(orchestrator: OrchestratorDependency):
    removed = orchestrator.cache.cleanup()
    return send_success(
        message=f"Removed {removed} expired entries", data={"removed": removed}
    )


@router.get("/stores/stats")
async def store_stats(repository: StoreRepositoryDependency):
    counts = await repository.count_by_source()
    total = counts["total"]
    google_percentage = round(counts["google"] / total * 100, 2) if total else 0.0
    return send_success(data={**counts, "google_percentage": google_percentage})


@router.delete("/stores/synced")
async def delete_synced_stores(
    repository: StoreRepositoryDependency,
    older_than_days: Annotated[int | None, Query(ge=1)] = None,
):
    older_than = timedelta(days=older_than_days) if older_than_days else None
    deleted = await repository.delete_by_source("google_api", older_than=older_than)
    logger.info(f"Deleted {deleted} stores synced from Google Places")
    return send_success(
        message=f"Deleted {deleted} synced stores", data={"deleted": deleted}
    )


async def _top_values(db, column, since: datetime, limit: int) -> list[dict]:
    stmt = (
        select(column, func.count().label("count"))
        .where(SearchAnalytics.timestamp >= since, column.is_not(None))
        .group_by(column)
        .order_by(func.count().desc())
        .limit(limit)
    )
    rows = (await db.execute(stmt)).all()
    return [{"value": value, "count": count} for value, count in rows]


@router.get("/analytics")
async def search_analytics(
    db: DBDependency,
    period: AnalyticsPeriod = "7d",
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    since = datetime.now(timezone.utc) - PERIODS[period]

    totals = (
        await db.execute(
            select(
                func.count(SearchAnalytics.id),
                func.avg(SearchAnalytics.search_time_ms),
                func.avg(SearchAnalytics.search_results),
            ).where(SearchAnalytics.timestamp >= since)
        )
    ).one()
    total_searches, avg_time, avg_results = totals

    by_source = dict(
        (
            await db.execute(
                select(SearchAnalytics.search_source, func.count(SearchAnalytics.id))
                .where(SearchAnalytics.timestamp >= since)
                .group_by(SearchAnalytics.search_source)
            )
        ).all()
    )

    return send_success(
        data={
            "period": period,
            "popular_queries": await _top_values(
                db, SearchAnalytics.search_query, since, limit
            ),
            "popular_locations": await _top_values(
                db, SearchAnalytics.location, since, limit
            ),
            "popular_categories": await _top_values(
                db, SearchAnalytics.category, since, limit
            ),
            "performance": {
                "total_searches": total_searches or 0,
                "avg_search_time_ms": round(avg_time or 0.0, 2),
                "avg_results": round(avg_results or 0.0, 2),
                "by_source": {
                    source: by_source.get(source, 0)
                    for source in ("cache", "database", "google_api")
                },
            },
        }
    )
