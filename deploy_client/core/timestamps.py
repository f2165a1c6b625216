"""RFC3339 formatting for display of job timestamps."""

from datetime import datetime, timezone


def format_rfc3339(value: datetime | None) -> str | None:
    """
    Format a timestamp as RFC3339 with second precision.

    Naive datetimes are taken to be UTC.

    Args:
        value: Timestamp or None

    Returns:
        str | None: e.g. ``2025-01-02T03:04:05Z``; None passes through
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.replace(microsecond=0)
    if value.utcoffset() == timezone.utc.utcoffset(None):
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return value.isoformat()
