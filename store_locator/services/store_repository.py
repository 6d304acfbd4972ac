"""Store persistence used by the search path and the store endpoints."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from store_locator.core.exceptions.errors import StoreNotFoundError
from store_locator.db.models.store import Store, utcnow
from store_locator.db.schemas.store import StoreData
from store_locator.utils.geo import GeoFilter, bounding_box, haversine_meters

DEFAULT_SEARCH_LIMIT = 50


def _parse_id(store_id) -> UUID:
    if isinstance(store_id, UUID):
        return store_id
    try:
        return UUID(str(store_id))
    except ValueError:
        raise StoreNotFoundError(detail={"id": str(store_id)})


LIKE_ESCAPE = "\\"


def contains_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class StoreRepository:
    """Opens its own session per call so concurrent callers never share one."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def search(
        self,
        query: Optional[str] = None,
        location: Optional[str] = None,
        category: Optional[str] = None,
        near: Optional[GeoFilter] = None,
        google_place_id: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[StoreData]:
        conditions = [Store.is_active.is_(True)]

        if query and query.strip():
            pattern = contains_pattern(query.strip())
            conditions.append(
                or_(
                    Store.store_name.ilike(pattern, escape=LIKE_ESCAPE),
                    Store.description.ilike(pattern, escape=LIKE_ESCAPE),
                    Store.store_type.ilike(pattern, escape=LIKE_ESCAPE),
                    cast(Store.tags, String).ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        if category and category.strip():
            escaped = contains_pattern(category.strip())[1:]  # prefix match only
            conditions.append(Store.store_type.ilike(escaped, escape=LIKE_ESCAPE))

        if location and location.strip():
            parts = [part.strip() for part in location.split(",") if part.strip()]
            location_matches = []
            for part in parts:
                pattern = contains_pattern(part)
                location_matches.append(Store.address.ilike(pattern, escape=LIKE_ESCAPE))
                location_matches.append(Store.country.ilike(pattern, escape=LIKE_ESCAPE))
            conditions.append(or_(*location_matches))

        if google_place_id:
            conditions.append(Store.google_place_id == google_place_id)

        if near is not None:
            min_lat, max_lat, lng_ranges = bounding_box(
                near.lat, near.lng, near.radius_meters
            )
            conditions.append(Store.latitude.between(min_lat, max_lat))
            conditions.append(
                or_(*(Store.longitude.between(low, high) for low, high in lng_ranges))
            )

        stmt = select(Store).where(*conditions)
        if near is None:
            stmt = stmt.order_by(Store.rating.desc(), Store.created_at.desc()).limit(
                limit
            )

        async with self._session_factory() as session:
            rows: Sequence[Store] = (await session.execute(stmt)).scalars().all()

        if near is not None:
            with_distance = [
                (haversine_meters(near.lat, near.lng, row.latitude, row.longitude), row)
                for row in rows
            ]
            rows = [
                row
                for distance, row in sorted(with_distance, key=lambda item: item[0])
                if distance <= near.radius_meters
            ][:limit]

        return [StoreData.from_model(row) for row in rows]

    async def find_by_place_id(self, google_place_id: str) -> Optional[StoreData]:
        matches = await self.search(google_place_id=google_place_id, limit=1)
        return matches[0] if matches else None

    async def find_near(
        self, lat: float, lng: float, radius_meters: float
    ) -> Optional[StoreData]:
        matches = await self.search(near=GeoFilter(lat, lng, radius_meters), limit=1)
        return matches[0] if matches else None

    async def create(self, store: StoreData, created_by: Optional[str] = None) -> StoreData:
        now = utcnow()
        row = Store(
            **store.to_columns(),
            created_by=created_by,
            is_active=True,
            created_at=now,
            updated_at=now,
            last_updated=now,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        return StoreData.from_model(row)

    async def update(self, store_id, store: StoreData) -> StoreData:
        async with self._session_factory() as session:
            row = await session.get(Store, _parse_id(store_id))
            if row is None:
                raise StoreNotFoundError(detail={"id": str(store_id)})
            for column, value in store.to_columns().items():
                setattr(row, column, value)
            row.last_updated = utcnow()
            await session.commit()
            await session.refresh(row)
        return StoreData.from_model(row)

    async def count_by_source(self) -> dict[str, int]:
        stmt = select(Store.source, func.count(Store.id)).group_by(Store.source)
        async with self._session_factory() as session:
            counts = dict((await session.execute(stmt)).all())
        return {
            "total": sum(counts.values()),
            "google": counts.get("google_api", 0),
            "user": counts.get("user_created", 0),
            "database": counts.get("database", 0),
        }

    async def delete_by_source(
        self, source: str, older_than: Optional[timedelta] = None
    ) -> int:
        stmt = delete(Store).where(Store.source == source)
        if older_than is not None:
            cutoff = datetime.now(timezone.utc) - older_than
            stmt = stmt.where(Store.last_updated < cutoff)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount or 0
