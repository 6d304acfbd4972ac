from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.responses import JSONResponse
import traceback
from sqlalchemy.exc import IntegrityError, NoResultFound
from store_locator.core.exceptions.errors import (
    ConfigurationError,
    ProviderError,
    StoreLocatorError,
    TransientIOError,
)
from store_locator.core.responses import send_error
from store_locator.utils.logging import get_logger


def _error_response(exc: StoreLocatorError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=send_error(
            message=exc.message,
            data=exc.detail or None,
            status_code=exc.status_code,
        ).model_dump(),
    )


def register_exception_handlers(app):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger = get_logger()
        logger.error(
            f"Unhandled exception for {request.method} {request.url}: {exc}\n"
            f"Traceback: {traceback.format_exc()}\n"
            f"User-Agent: {request.headers.get('user-agent')}"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=send_error(
                message="An unexpected error occurred.",
                data={"detail": str(exc)},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            ).model_dump(),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        logger = get_logger()
        raw_errors = exc.errors()
        logger.warning(
            f"Validation error for {request.method} {request.url}: {raw_errors}"
        )

        friendly_errors = {}
        for error in raw_errors:
            field = ".".join(map(str, error["loc"]))
            for prefix in ("body.", "query."):
                if field.startswith(prefix):
                    field = field[len(prefix) :]
            friendly_errors[field] = error["msg"]

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=send_error(
                message="Validation failed",
                data={"errors": friendly_errors},
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            ).model_dump(),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger = get_logger()
        detail = str(exc.orig) if hasattr(exc, "orig") else "Database integrity error"
        logger.error(f"Integrity error for {request.method} {request.url}: {detail}")

        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=send_error(
                message=detail,
                data=None,
                status_code=status.HTTP_409_CONFLICT,
            ).model_dump(),
        )

    @app.exception_handler(NoResultFound)
    async def not_found_exception_handler(request: Request, exc: NoResultFound):
        logger = get_logger()
        logger.warning(f"Resource not found for {request.method} {request.url}")

        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=send_error(
                message="Resource not found",
                data=None,
                status_code=status.HTTP_404_NOT_FOUND,
            ).model_dump(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger = get_logger()
        logger.warning(
            f"HTTP {exc.status_code} for {request.method} {request.url}: {exc.detail}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=send_error(
                message=exc.detail, status_code=exc.status_code
            ).model_dump(),
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger = get_logger()
        logger.error(
            f"Configuration error for {request.method} {request.url}: {exc.message}"
        )
        return _error_response(exc)

    @app.exception_handler(ProviderError)
    async def provider_error_handler(request: Request, exc: ProviderError):
        logger = get_logger()
        logger.error(
            f"Places provider error for {request.method} {request.url}: "
            f"{exc.message} (status={exc.provider_status})"
        )
        return _error_response(exc)

    @app.exception_handler(TransientIOError)
    async def transient_error_handler(request: Request, exc: TransientIOError):
        logger = get_logger()
        logger.warning(
            f"Upstream I/O failure for {request.method} {request.url}: {exc.message}"
        )
        return _error_response(exc)

    @app.exception_handler(StoreLocatorError)
    async def store_locator_error_handler(request: Request, exc: StoreLocatorError):
        logger = get_logger()
        logger.warning(f"{type(exc).__name__} for {request.method} {request.url}")
        return _error_response(exc)
