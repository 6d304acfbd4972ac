from fastapi.openapi.utils import get_openapi
from store_locator.core.config import settings


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=settings.APP_NAME,
        version=settings.PROJECT_VERSION,
        description=(
            "Store locator API: hybrid store search (cache, database, Google Places), "
            "store management, saved history and admin analytics."
        ),
        routes=app.routes,
        tags=app.openapi_tags,
    )
    openapi_schema["info"]["contact"] = {"url": settings.APP_URL}
    app.openapi_schema = openapi_schema
    return app.openapi_schema
