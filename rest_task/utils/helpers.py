"""Shared helper functions used across activity modules."""

from __future__ import annotations

from datetime import UTC, datetime


def parse_timestamp(timestamp: str) -> datetime:
    """Parse an ISO 8601 timestamp string, defaulting to current UTC time.

    Args:
        timestamp: ISO 8601 timestamp string, or empty string.

    Returns:
        A timezone-aware ``datetime``. Naive input is taken as UTC. Falls
        back to ``datetime.now(UTC)`` if the input is empty or unparseable.
    """
    if not timestamp:
        return datetime.now(UTC)
    try:
        parsed = datetime.fromisoformat(timestamp)
    except (ValueError, TypeError):
        return datetime.now(UTC)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def utc_now() -> datetime:
    """Return the current UTC time (patch point for tests)."""
    return datetime.now(UTC)
