from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete, select

from store_locator.core.dependencies import ClientIdDependency, DBDependency
from store_locator.core.responses import send_success
from store_locator.db.models.search_history import MAX_HISTORY_PER_CLIENT, SearchHistory
from store_locator.db.models.store import utcnow
from store_locator.db.schemas.history import HistoryCreate, HistoryResponse

router = APIRouter(prefix="/history", tags=["history"])


@router.get("")
async def list_history(client_id: ClientIdDependency, db: DBDependency):
    rows = await db.execute(
        select(SearchHistory)
        .where(SearchHistory.client_id == client_id)
        .order_by(SearchHistory.saved_at.desc())
    )
    history = [HistoryResponse.model_validate(item) for item in rows.scalars().all()]
    return send_success(data={"history": history, "total_items": len(history)})


@router.post("")
async def save_to_history(
    payload: HistoryCreate, client_id: ClientIdDependency, db: DBDependency
):
    existing = await db.execute(
        select(SearchHistory).where(
            SearchHistory.client_id == client_id,
            SearchHistory.store_id == payload.store_id,
            SearchHistory.search_query == payload.search_query,
        )
    )
    entry = existing.scalars().first()

    if entry is not None:
        entry.saved_at = utcnow()
    else:
        entry = SearchHistory(
            client_id=client_id,
            store_id=payload.store_id,
            name=payload.name,
            address=payload.address,
            store_type=payload.store_type,
            phone=payload.phone,
            email=payload.email.lower() if payload.email else None,
            latitude=payload.coordinates.lat if payload.coordinates else None,
            longitude=payload.coordinates.lng if payload.coordinates else None,
            search_query=payload.search_query,
            saved_at=utcnow(),
        )
        db.add(entry)
    await db.flush()

    # Keep only the newest entries per client
    overflow = await db.execute(
        select(SearchHistory.id)
        .where(SearchHistory.client_id == client_id)
        .order_by(SearchHistory.saved_at.desc())
        .offset(MAX_HISTORY_PER_CLIENT)
    )
    stale_ids = list(overflow.scalars().all())
    if stale_ids:
        await db.execute(delete(SearchHistory).where(SearchHistory.id.in_(stale_ids)))

    await db.commit()
    await db.refresh(entry)
    return send_success(
        message="Saved to history successfully",
        data=HistoryResponse.model_validate(entry),
    )


@router.delete("/{history_id}")
async def delete_history_item(
    history_id: UUID, client_id: ClientIdDependency, db: DBDependency
):
    result = await db.execute(
        delete(SearchHistory).where(
            SearchHistory.id == history_id, SearchHistory.client_id == client_id
        )
    )
    if not result.rowcount:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="History item not found"
        )
    await db.commit()
    return send_success(message="History item deleted successfully")
