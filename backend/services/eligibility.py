"""
Donor eligibility rules.

A donor may give blood again once 90 whole days have passed since the last
recorded donation. Day counts are floored, so a donor becomes eligible at
exactly 90 x 24h after the previous donation.
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

DONATION_COOLDOWN_DAYS = 90

ONE_DAY = timedelta(days=1)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return ensure_utc(now) if now is not None else datetime.now(timezone.utc)


def days_since_last_donation(last_donation: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    if last_donation is None:
        return None
    return (_now(now) - ensure_utc(last_donation)) // ONE_DAY


def can_donate(last_donation: Optional[datetime], now: Optional[datetime] = None) -> bool:
    days = days_since_last_donation(last_donation, now)
    if days is None:
        return True
    return days >= DONATION_COOLDOWN_DAYS


def days_until_eligible(last_donation: Optional[datetime], now: Optional[datetime] = None) -> int:
    days = days_since_last_donation(last_donation, now)
    if days is None:
        return 0
    return max(DONATION_COOLDOWN_DAYS - days, 0)


def next_eligible_date(last_donation: Optional[datetime]) -> Optional[datetime]:
    if last_donation is None:
        return None
    return ensure_utc(last_donation) + timedelta(days=DONATION_COOLDOWN_DAYS)
