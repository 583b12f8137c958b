"""Logging configuration"""
import logging
import sys
from app.core.config import settings

LOGGER_NAME = "leaddesk"
HANDLER_NAME = "leaddesk-console"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(level_name: str) -> int:
    """Map a level name like "debug" to its number; unknown names mean INFO"""
    level = logging.getLevelName((level_name or "").upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level_name: str = settings.LOG_LEVEL) -> logging.Logger:
    """
    Set up the application logger with a single stdout handler.

    Calling it again only changes the level, so reloads and tests never
    stack duplicate handlers.
    """
    app_logger = logging.getLogger(LOGGER_NAME)
    level = resolve_level(level_name)
    app_logger.setLevel(level)

    handler = next((h for h in app_logger.handlers if h.get_name() == HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        app_logger.addHandler(handler)
    handler.setLevel(level)
    return app_logger


logger = configure_logging()
