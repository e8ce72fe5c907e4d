"""Record Timestamps — ISO-8601 formatting and monotonic update stamps.

Invariants:
    - Stamps are UTC, millisecond precision, 'Z' suffix (2024-05-01T10:00:00.000Z)
    - stamp_update() result is >= created_at and strictly > previous updatedAt

Design Decisions:
    - Millisecond layout matches what mobile clients already persisted, so old
      and new records sort and compare the same way
    - Collisions inside one millisecond are resolved by bumping 1ms, not by
      adding precision
"""

from datetime import datetime, timedelta, timezone

_ONE_MS = timedelta(milliseconds=1)


def format_timestamp(moment: datetime) -> str:
    """Render an aware or naive (assumed UTC) datetime as an ISO-8601 'Z' stamp."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 stamp. Raises ValueError on malformed input."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def try_parse_timestamp(value: object) -> datetime | None:
    """parse_timestamp for values read back from storage; None when not a valid stamp."""
    if not isinstance(value, str):
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None


def stamp_update(
    now: datetime, created_at: str, previous_updated_at: object = None,
) -> str:
    """updatedAt for a write: now, but never before created_at and always after the previous stamp.

    A previous stamp that does not parse (legacy records were never validated) is ignored.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    moment = max(now, parse_timestamp(created_at))
    previous = try_parse_timestamp(previous_updated_at)
    if previous is not None:
        moment = max(moment, previous + _ONE_MS)
    return format_timestamp(moment)
