"""
Waitlist entry status lifecycle.

Pending is the initial state. Any of the three states may be requested as a
target from any other (administrators may reverse a decision), so the only
rule is that the target is one of the enumerated values. Every code path that
changes an entry goes through this module so the timestamp invariants live in
one place:

- updated_at strictly increases on every mutation
- approved_at is stamped the first time status becomes Approved and is never
  cleared afterwards
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from app.core.exceptions import ValidationError
from app.models.waitlist_entry import WaitlistEntry, WaitlistStatus

VALID_STATUSES = [s.value for s in WaitlistStatus]

_ONE_TICK = timedelta(microseconds=1)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything we write is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def next_timestamp(previous: Optional[datetime] = None, now: Optional[datetime] = None) -> datetime:
    """Return a UTC timestamp strictly later than ``previous``."""
    now = _utc(now) or datetime.now(timezone.utc)
    previous = _utc(previous)
    if previous is not None and now <= previous:
        return previous + _ONE_TICK
    return now


def parse_status(value: Union[str, WaitlistStatus, None]) -> WaitlistStatus:
    if isinstance(value, WaitlistStatus):
        return value
    for status in WaitlistStatus:
        if value == status.value:
            return status
    raise ValidationError(
        f"Status must be one of: {', '.join(VALID_STATUSES)}",
        details=[f"status: invalid value {value!r}"],
    )


def stamp_new(entry: WaitlistEntry, now: Optional[datetime] = None) -> WaitlistEntry:
    """Initialise a freshly built entry: Pending, created_at == updated_at."""
    stamp = next_timestamp(now=now)
    entry.status = WaitlistStatus.PENDING
    entry.created_at = stamp
    entry.updated_at = stamp
    entry.approved_at = None
    return entry


def touch(entry: WaitlistEntry, now: Optional[datetime] = None) -> datetime:
    entry.updated_at = next_timestamp(entry.updated_at, now)
    return entry.updated_at


def transition(entry: WaitlistEntry, target: Union[str, WaitlistStatus], now: Optional[datetime] = None) -> WaitlistEntry:
    """Move ``entry`` to ``target``.

    Raises ValidationError before touching the entry if the target is not a
    known status. Status, updated_at and (first time only) approved_at are
    assigned together so one commit persists all of them.
    """
    status = parse_status(target)
    stamp = next_timestamp(entry.updated_at, now)

    entry.status = status
    entry.updated_at = stamp
    if status is WaitlistStatus.APPROVED and entry.approved_at is None:
        entry.approved_at = stamp
    return entry
