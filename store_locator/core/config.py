from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True)

    # App Settings
    APP_NAME: str = "Store Locator"
    APP_URL: str = "http://localhost:8000"
    PROJECT_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "*"  # Comma-separated string or "*"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_DEFAULT: str = "60/minute"

    DATABASE_URL: str
    DATABASE_TIMEOUT_SECONDS: float = 5.0
    ADMIN_API_KEY: str = ""  # Required; validate below

    # Search result cache
    CACHE_TTL_SECONDS: int = 24 * 60 * 60
    CACHE_MAX_ENTRIES: int = 1000
    CACHE_CLEANUP_INTERVAL_SECONDS: int = 60 * 60

    # Google Places
    GOOGLE_PLACES_API_KEY: str | None = None
    PLACES_TIMEOUT_SECONDS: float = 5.0
    PLACES_SEARCH_RADIUS_METERS: int = 5000

    # Write-back of external results
    SYNC_MATCH_RADIUS_METERS: float = 100.0
    WRITE_BACK_CONCURRENCY: int = 5

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Parse ALLOWED_ORIGINS
    @property
    def allowed_origins_list(self) -> List[str]:
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def admin_key_valid(self) -> bool:
        return bool(self.ADMIN_API_KEY and self.ADMIN_API_KEY != "change-me")

    @property
    def places_configured(self) -> bool:
        return bool(self.GOOGLE_PLACES_API_KEY)


settings = Settings()

# Validate ADMIN_API_KEY on import
if not settings.admin_key_valid:
    raise ValueError(
        "ADMIN_API_KEY must be set in .env "
        '(python -c "import secrets; print(secrets.token_hex(32))" generates one).'
    )
