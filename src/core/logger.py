"""
Logging for the wiki API server.

The app and uvicorn share one stdout handler. The level follows
Settings.debug: DEBUG when set, INFO otherwise.
"""

import logging
import sys

from .settings import Settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
# Per-request chatter; warnings still get through
QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "multipart")


def setup_logging(settings: Settings) -> None:
    """
    Install the stdout handler on the root logger, replacing any others.

    Args:
        settings: Application settings; debug selects the DEBUG level
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)

    for name in UVICORN_LOGGERS:
        log = logging.getLogger(name)
        log.handlers = []
        log.propagate = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
