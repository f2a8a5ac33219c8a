"""Core configuration and infrastructure helpers."""

from .config import DEFAULT_APP_NAME, DEFAULT_TITLE_PREFIX, Settings
from .database import create_db_engine, get_session
from .logging import configure_logging
from .time import epoch_now, utcnow

__all__ = [
    "DEFAULT_APP_NAME",
    "DEFAULT_TITLE_PREFIX",
    "Settings",
    "configure_logging",
    "create_db_engine",
    "epoch_now",
    "get_session",
    "utcnow",
]
