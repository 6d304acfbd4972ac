from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlalchemy import func, or_, select

from store_locator.core.dependencies import DBDependency, StoreRepositoryDependency
from store_locator.core.exceptions.errors import StoreNotFoundError
from store_locator.core.responses import paginate, send_success
from store_locator.db.models.store import Store, utcnow
from store_locator.db.schemas.store import StoreCreate, StoreData, StoreUpdate
from store_locator.services.store_repository import LIKE_ESCAPE, contains_pattern
from store_locator.utils.geo import GeoFilter

router = APIRouter(prefix="/stores", tags=["stores"])


async def _get_active_store(db, store_id: UUID) -> Store:
    store = await db.get(Store, store_id)
    if store is None or not store.is_active:
        raise StoreNotFoundError(detail={"id": str(store_id)})
    return store


@router.get("")
async def list_stores(
    db: DBDependency,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: str = "",
    store_type: str = "",
    address: str = "",
):
    conditions = [Store.is_active.is_(True)]
    if search:
        pattern = contains_pattern(search)
        conditions.append(
            or_(
                Store.store_name.ilike(pattern, escape=LIKE_ESCAPE),
                Store.address.ilike(pattern, escape=LIKE_ESCAPE),
                Store.country.ilike(pattern, escape=LIKE_ESCAPE),
            )
        )
    if store_type:
        conditions.append(Store.store_type == store_type)
    if address:
        conditions.append(Store.address.ilike(contains_pattern(address), escape=LIKE_ESCAPE))

    total = await db.scalar(select(func.count(Store.id)).where(*conditions))
    rows = await db.execute(
        select(Store)
        .where(*conditions)
        .order_by(Store.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    stores = [StoreData.from_model(store) for store in rows.scalars().all()]

    return send_success(
        data={"stores": stores, "pagination": paginate(page, limit, total or 0)}
    )


@router.get("/search")
async def search_database(
    repository: StoreRepositoryDependency,
    q: str | None = None,
    location: str | None = None,
    category: str | None = None,
    lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
    radius: Annotated[float, Query(gt=0, le=50_000)] = 5000,
    google_place_id: str | None = None,
):
    near = GeoFilter(lat, lng, radius) if lat is not None and lng is not None else None
    stores = await repository.search(
        query=q,
        location=location,
        category=category,
        near=near,
        google_place_id=google_place_id,
    )
    return send_success(
        message=f"Found {len(stores)} stores in database",
        data={"stores": stores, "total_results": len(stores)},
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_store(payload: StoreCreate, db: DBDependency):
    now = utcnow()
    store = Store(
        store_name=payload.store_name.strip(),
        store_type=payload.store_type,
        address=payload.address.strip(),
        country=payload.country.strip(),
        latitude=payload.coordinates.lat,
        longitude=payload.coordinates.lng,
        phone=payload.phone.strip() if payload.phone else None,
        email=str(payload.email) if payload.email else None,
        website=payload.website,
        description=payload.description.strip() if payload.description else None,
        hours=payload.hours,
        rating=payload.rating,
        tags=payload.tags,
        source="user_created",
        created_by=payload.created_by,
        created_at=now,
        updated_at=now,
        last_updated=now,
    )
    db.add(store)
    await db.commit()
    await db.refresh(store)

    return send_success(
        message="Store created successfully",
        data=StoreData.from_model(store),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/{store_id}")
async def get_store(store_id: UUID, db: DBDependency):
    store = await _get_active_store(db, store_id)
    return send_success(data=StoreData.from_model(store))


@router.put("/{store_id}")
async def update_store(store_id: UUID, payload: StoreUpdate, db: DBDependency):
    store = await _get_active_store(db, store_id)

    changes = payload.model_dump(exclude_unset=True)
    coordinates = changes.pop("coordinates", None)
    if coordinates is not None:
        store.latitude = coordinates["lat"]
        store.longitude = coordinates["lng"]
    if "email" in changes and changes["email"] is not None:
        changes["email"] = str(changes["email"])
    for field, value in changes.items():
        setattr(store, field, value)
    store.last_updated = utcnow()

    await db.commit()
    await db.refresh(store)
    return send_success(
        message="Store updated successfully", data=StoreData.from_model(store)
    )


@router.delete("/{store_id}")
async def delete_store(store_id: UUID, db: DBDependency):
    store = await _get_active_store(db, store_id)
    data = StoreData.from_model(store)
    await db.delete(store)
    await db.commit()
    return send_success(message="Store deleted successfully", data=data)
