"""
Timestamp helpers. Every stored timestamp is a UTC ISO-8601 string.
"""

from datetime import datetime, timezone

from dateutil import parser


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> datetime:
    """Accept a datetime or an ISO string; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parser.isoparse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value) -> str:
    return parse_timestamp(value).astimezone(timezone.utc).isoformat()


def now_iso() -> str:
    return utcnow().isoformat()
