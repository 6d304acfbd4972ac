from fastapi import APIRouter

from store_locator.api.v1.endpoints.admin import router as admin_router
from store_locator.api.v1.endpoints.history import router as history_router
from store_locator.api.v1.endpoints.search import router as search_router
from store_locator.api.v1.endpoints.stores import router as stores_router

router = APIRouter(prefix="/api/v1")
router.include_router(search_router)
router.include_router(stores_router)
router.include_router(history_router)
router.include_router(admin_router)
