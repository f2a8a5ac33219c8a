"""Clock helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def epoch_now() -> int:
    """Return the current time in whole epoch seconds."""
    return int(time.time())


__all__ = ["epoch_now", "utcnow"]
