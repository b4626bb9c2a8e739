"""Expiry arithmetic shared by the dashboard, order and risk code.

All timestamps are stored as naive UTC datetimes.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

LOW_SHELF_LIFE_DAYS = 7

def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)

def expiry_from_shelf_life(shelf_life_days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) + timedelta(days=shelf_life_days)

def days_until_expiry(expiry: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days left before `expiry`, rounded up. None when the expiry is unknown."""
    if expiry is None:
        return None
    delta = expiry - (now or utcnow())
    return math.ceil(delta.total_seconds() / 86400)

def is_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    days = days_until_expiry(expiry, now)
    return days is not None and days <= 0

def is_low_shelf_life(days: Optional[int]) -> bool:
    return days is not None and 0 < days <= LOW_SHELF_LIFE_DAYS
