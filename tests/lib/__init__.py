"""
Shared helpers for the test suites.
"""
from datetime import datetime, timezone

TZ = "Asia/Kolkata"
USER_ID = "user_2abc"
OTHER_USER_ID = "user_9xyz"


def utc(year: int, month: int, day: int, hour: int = 12, minute: int = 0, second: int = 0) -> datetime:
    """Aware UTC datetime; noon by default so the Asia/Kolkata date is the same day."""
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)

API = "/api/v1"
