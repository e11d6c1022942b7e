"""Shared model helpers."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time without tzinfo.

    Columns are TIMESTAMP WITHOUT TIME ZONE holding UTC, which keeps audit
    timestamps comparable with the naive instants passed to holder lookups.
    """
    return datetime.now(UTC).replace(tzinfo=None)
