from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_clock() -> Clock:
    """FastAPI dependency; overridden in tests to pin the current time."""
    return utcnow
