import secrets
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from store_locator.core.config import settings
from store_locator.db.session import SessionLocal
from store_locator.services.search_orchestrator import SearchOrchestrator
from store_locator.services.store_repository import StoreRepository
from store_locator.utils.logging import get_logger

logger = get_logger()

admin_key_header = APIKeyHeader(
    name="X-Admin-Key", scheme_name="AdminKey", auto_error=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.exception(f"Database transaction rolled back: {e}")
            raise
        finally:
            await session.close()


DBDependency = Annotated[AsyncSession, Depends(get_db)]


def get_store_repository(request: Request) -> StoreRepository:
    return request.app.state.store_repository


def get_search_orchestrator(request: Request) -> SearchOrchestrator:
    return request.app.state.search_orchestrator


StoreRepositoryDependency = Annotated[StoreRepository, Depends(get_store_repository)]
OrchestratorDependency = Annotated[SearchOrchestrator, Depends(get_search_orchestrator)]


async def require_admin(api_key: Annotated[str | None, Depends(admin_key_header)]):
    if not api_key or not secrets.compare_digest(api_key, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin key",
        )
    return True


def get_client_id(request: Request) -> str:
    return request.headers.get("x-client-id") or "anonymous"


ClientIdDependency = Annotated[str, Depends(get_client_id)]
