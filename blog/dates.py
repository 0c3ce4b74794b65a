"""
Timestamp formatting for post dates.

Posts are ordered by sorting the stored ``date`` string, so the format
must be fixed-width, zero-padded and most-significant-unit-first.
"""
from datetime import datetime, timezone

DATE_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def get_date() -> str:
    """Return the current UTC time formatted with ``DATE_FORMAT``."""
    return datetime.now(timezone.utc).strftime(DATE_FORMAT)
