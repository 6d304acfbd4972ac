import os
from loguru import logger
from store_locator.core.config import settings

LOG_DIR = settings.LOG_DIR
os.makedirs(LOG_DIR, exist_ok=True)

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"


def _from_search_stack(record) -> bool:
    return record["name"].startswith("store_locator.services")


def _sink(path: str, level: str, **options) -> None:
    logger.add(
        path,
        rotation="10 MB",
        level=level,
        enqueue=True,
        format=LOG_FORMAT,
        **options,
    )


# Main app log
_sink(
    os.path.join(LOG_DIR, "app.log"),
    settings.LOG_LEVEL,
    backtrace=True,
    diagnose=False,
)

# Database fallbacks, provider failures and write-back errors
_sink(
    os.path.join(LOG_DIR, "search_errors.log"),
    "WARNING",
    backtrace=True,
    diagnose=False,
    filter=_from_search_stack,
)

# Startup log, only records bound with startup=True
STARTUP_LOG_PATH = os.path.join(LOG_DIR, "startup", "startup.log")
os.makedirs(os.path.dirname(STARTUP_LOG_PATH), exist_ok=True)
_sink(
    STARTUP_LOG_PATH,
    "INFO",
    filter=lambda record: record["extra"].get("startup", False),
)


def get_logger(**context):
    """Return the global logger, optionally bound to extra context."""
    if context:
        return logger.bind(**context)
    return logger
