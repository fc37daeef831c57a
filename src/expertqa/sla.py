"""SLA clock: deadline derivation for paid questions."""

from datetime import UTC, datetime, timedelta
from enum import StrEnum


class DeadlineAnchor(StrEnum):
    """Point in time the response window is measured from."""

    CREATED = "created"
    PAID = "paid"


def utcnow() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def compute_deadline(
    created_at: datetime,
    paid_at: datetime | None,
    response_time_hours: int,
    anchor: DeadlineAnchor = DeadlineAnchor.CREATED,
) -> datetime | None:
    """Return the answer deadline, or None if the clock has not started.

    With the PAID anchor the clock only starts once payment is confirmed.
    """
    if anchor == DeadlineAnchor.PAID:
        if paid_at is None:
            return None
        start = paid_at
    else:
        start = created_at

    return as_utc(start) + timedelta(hours=response_time_hours)


def is_overdue(deadline: datetime | None, now: datetime) -> bool:
    """Check whether ``now`` is strictly past the deadline."""
    if deadline is None:
        return False
    return as_utc(now) > as_utc(deadline)
