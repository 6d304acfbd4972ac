from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from store_locator.api.v1.router import router as v1_router
from store_locator.core.config import settings
from store_locator.core.exceptions.handlers import register_exception_handlers
from store_locator.core.lifespan import lifespan
from store_locator.core.logging import setup_early_logging
from store_locator.core.middlewares import LogRequestsMiddleware
from store_locator.core.openapi import custom_openapi
from store_locator.core.rate_limiting import setup_rate_limiting
from store_locator.core.responses import send_error, send_success
from store_locator.db.session import ping_db
from store_locator.utils.logging import get_logger

# Setup early logging for startup errors
setup_early_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.PROJECT_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "search", "description": "Hybrid store search"},
        {"name": "stores", "description": "Store management endpoints"},
        {"name": "history", "description": "Saved search history per client"},
        {"name": "admin", "description": "Cache, sync and analytics administration"},
    ],
)

# Customize OpenAPI schema
app.openapi = lambda: custom_openapi(app)

# Setup rate limiting if enabled
setup_rate_limiting(app)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add logging middleware
app.add_middleware(LogRequestsMiddleware)

# Register all exception handlers
register_exception_handlers(app)

# Include API routers
app.include_router(v1_router)


@app.get("/health")
async def health_check():
    try:
        await ping_db()
    except Exception as e:
        get_logger().error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=send_error(
                message="Database unavailable",
                data={"status": "unhealthy", "version": settings.PROJECT_VERSION},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            ).model_dump(),
        )

    return send_success(
        message="OK",
        data={
            "status": "healthy",
            "version": settings.PROJECT_VERSION,
            "places_configured": settings.places_configured,
        },
    )
