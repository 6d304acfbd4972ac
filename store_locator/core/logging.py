import inspect
import logging
import os

from store_locator.core.config import settings
from store_locator.utils.logging import get_logger


class InterceptHandler(logging.Handler):
    """Forward stdlib log records (uvicorn, sqlalchemy, httpx) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        logger = get_logger()
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_early_logging():
    os.makedirs(settings.LOG_DIR, exist_ok=True)

    # Errors raised before the loguru sinks are usable still land on disk
    early_logger = logging.getLogger("startup")
    early_logger.setLevel(logging.ERROR)
    fh = logging.FileHandler(os.path.join(settings.LOG_DIR, "startup.log"))
    fh.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
    early_logger.addHandler(fh)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx"):
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False
