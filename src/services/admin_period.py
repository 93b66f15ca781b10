"""Administration period classification for event dates.

Events are bucketed by which administration was in office on their start
date. The boundaries are fixed historical dates:

- ``PERIOD_A``: 2017-01-20 (inclusive) to 2021-01-20 (exclusive)
- ``PERIOD_B``: 2025-01-20 (inclusive), open ended
- ``OTHER``: everything else, including the gap between the two

Comparisons are made on the UTC calendar day so that a timestamp late in the
evening in a western timezone does not drift into the next period.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum

from src.services.errors import ValidationError


class AdminPeriod(str, Enum):
    PERIOD_A = "TRUMP_1"
    PERIOD_B = "TRUMP_2"
    OTHER = "OTHER"


PERIOD_A_START = date(2017, 1, 20)
PERIOD_A_END = date(2021, 1, 20)
PERIOD_B_START = date(2025, 1, 20)
EPOCH = date(1970, 1, 1)

_LABELS = {
    AdminPeriod.PERIOD_A: "Trump Administration 1 (2017-2021)",
    AdminPeriod.PERIOD_B: "Trump Administration 2 (2025-)",
    AdminPeriod.OTHER: "Other Period",
}

_SHORT_LABELS = {
    AdminPeriod.PERIOD_A: "Trump 1",
    AdminPeriod.PERIOD_B: "Trump 2",
    AdminPeriod.OTHER: "Other",
}


def to_utc_date(value: date | datetime) -> date:
    """Reduce a date or datetime to its UTC calendar day.

    Naive datetimes are taken to already be in UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def classify_period(value: date | datetime) -> AdminPeriod:
    """Return the administration period an event date falls into."""
    day = to_utc_date(value)

    if PERIOD_A_START <= day < PERIOD_A_END:
        return AdminPeriod.PERIOD_A
    if day >= PERIOD_B_START:
        return AdminPeriod.PERIOD_B
    return AdminPeriod.OTHER


def get_period_label(period: AdminPeriod) -> str:
    return _LABELS[AdminPeriod(period)]


def get_period_short_label(period: AdminPeriod) -> str:
    """Compact label used on chart axes."""
    return _SHORT_LABELS[AdminPeriod(period)]


def get_period_date_range(period: AdminPeriod) -> tuple[date, date | None]:
    """Return ``(start, end)`` for a period; ``end`` is exclusive or None."""
    period = AdminPeriod(period)
    if period is AdminPeriod.PERIOD_A:
        return PERIOD_A_START, PERIOD_A_END
    if period is AdminPeriod.PERIOD_B:
        return PERIOD_B_START, None
    return EPOCH, None


def _end_of_utc_day(now: datetime | None) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    today = now.astimezone(timezone.utc).date()
    return datetime.combine(today, time.max, tzinfo=timezone.utc)


def is_valid_event_date(
    value: date | datetime,
    now: datetime | None = None,
) -> bool:
    """Return True when ``value`` is not later than the end of today (UTC)."""
    limit = _end_of_utc_day(now)

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value <= limit
    return value <= limit.date()


def validate_event_date(
    value: date | datetime,
    now: datetime | None = None,
    field: str = "startDate",
) -> date:
    """Reject event dates in the future.

    Returns the UTC calendar day of ``value`` when it is acceptable.

    Raises:
        ValidationError: if ``value`` is after the end of the current UTC day.
    """
    if not is_valid_event_date(value, now=now):
        raise ValidationError(
            "Event date cannot be in the future",
            details={field: ["Date cannot be in the future"]},
        )
    return to_utc_date(value)
