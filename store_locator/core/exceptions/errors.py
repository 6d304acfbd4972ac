from fastapi import status


class StoreLocatorError(Exception):
    """Base class for errors raised by the search stack."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Store locator error"

    def __init__(self, message: str | None = None, detail: dict | None = None):
        self.message = message or self.default_message
        self.detail = detail or {}
        super().__init__(self.message)


class ConfigurationError(StoreLocatorError):
    """External API credentials are missing; never retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Google Places API key not configured"


class ProviderError(StoreLocatorError):
    """The places provider answered with a non-success status."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Places provider returned an error"

    def __init__(
        self,
        message: str | None = None,
        provider_status: str | None = None,
        detail: dict | None = None,
    ):
        self.provider_status = provider_status
        detail = {**(detail or {}), "provider_status": provider_status}
        super().__init__(message, detail)


class TransientIOError(StoreLocatorError):
    """Network failure or timeout talking to the database or the provider."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Upstream service timed out or is unreachable"


class StoreNotFoundError(StoreLocatorError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Store not found"
