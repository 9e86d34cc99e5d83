"""Timestamp parsing and formatting helpers."""

from datetime import UTC, datetime

from dateutil import parser as date_parser

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# RFC 822 zone names that dateutil does not resolve on its own (offsets in seconds)
RFC822_ZONES = {
    "EST": -5 * 3600,
    "EDT": -4 * 3600,
    "CST": -6 * 3600,
    "CDT": -5 * 3600,
    "MST": -7 * 3600,
    "MDT": -6 * 3600,
    "PST": -8 * 3600,
    "PDT": -7 * 3600,
}


def format_instant(moment: datetime) -> str:
    """Render a datetime as a UTC ISO-8601 instant with millisecond precision.

    Naive datetimes are taken to be UTC.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_instant(raw: str | None) -> datetime | None:
    """Parse a feed timestamp in any common format.

    Returns:
        Timezone-aware datetime, or None when the value is empty or unparseable
    """
    if not raw or not raw.strip():
        return None

    try:
        parsed = date_parser.parse(raw.strip(), tzinfos=RFC822_ZONES)
    except (ValueError, TypeError, OverflowError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def to_iso(raw: str | None) -> str:
    """Convert a raw feed timestamp to ISO-8601, or "" when unparseable."""
    parsed = parse_instant(raw)
    if parsed is None:
        return ""
    try:
        return format_instant(parsed)
    except (ValueError, OverflowError):
        return ""
