import time
from typing import Annotated

from fastapi import APIRouter, Query, Request
from sqlalchemy.exc import SQLAlchemyError

from store_locator.core.dependencies import DBDependency, OrchestratorDependency
from store_locator.core.responses import send_success
from store_locator.db.models.search_analytics import SearchAnalytics
from store_locator.db.schemas.search import CategoryInference, SearchResponse
from store_locator.services.relevance import rank_stores
from store_locator.utils.categories import infer_product_category
from store_locator.utils.logging import get_logger

router = APIRouter(prefix="/search", tags=["search"])


@router.get("")
async def search_stores(
    request: Request,
    orchestrator: OrchestratorDependency,
    db: DBDependency,
    q: Annotated[str, Query(min_length=1, max_length=200)],
    location: Annotated[str, Query(min_length=1, max_length=200)],
    category: Annotated[str | None, Query(max_length=50)] = None,
):
    started = time.perf_counter()
    result = await orchestrator.search_stores_with_fallback(q, location, category)
    search_time_ms = round((time.perf_counter() - started) * 1000, 2)

    ranked = rank_stores(q, result.stores)

    db.add(
        SearchAnalytics(
            search_query=q.strip(),
            location=location.strip(),
            category=category.strip() if category else None,
            search_results=len(ranked),
            search_time_ms=search_time_ms,
            search_source=result.source,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
    )
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        get_logger().warning(f"Could not record search analytics: {e}")

    response = SearchResponse(
        query=q,
        location=location,
        category=category,
        stores=ranked,
        source=result.source,
        cached=result.cached,
        synced_to_database=result.synced_to_database,
        total_results=len(ranked),
        search_time_ms=search_time_ms,
    )
    message = "No stores found" if not ranked else f"Found {len(ranked)} stores"
    return send_success(message=message, data=response)


@router.get("/category")
async def infer_category(product: Annotated[str, Query(min_length=1, max_length=200)]):
    inferred = infer_product_category(product)
    data = CategoryInference(product=product, **(inferred or {}))
    message = "Category inferred" if inferred else "No matching category"
    return send_success(message=message, data=data)
