"""
UTC timestamp utilities for SeedKeeper.

All timestamps MUST be in UTC with explicit timezone markers.

This module provides:
- utc_now(): Current time as timezone-aware datetime
- utc_timestamp(): ISO 8601 timestamp string with 'Z' suffix
- file_slug_from_timestamp(): Filesystem-safe timestamp slug for backup names

Examples:
    >>> from seedkeeper.utils.time import utc_timestamp, file_slug_from_timestamp
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
    >>> file_slug_from_timestamp()
    '2025-11-02T08-30-45Z'
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time in UTC with timezone info.

    Returns:
        datetime: Current UTC time with tzinfo=timezone.utc

    Note:
        NEVER use datetime.now() without timezone parameter.
        NEVER use datetime.utcnow() (deprecated, returns naive datetime).
    """
    return datetime.now(UTC)


def utc_timestamp() -> str:
    """
    Return ISO 8601 timestamp string with 'Z' suffix.

    Format: YYYY-MM-DDTHH:MM:SSZ
    Example: 2025-11-02T08:30:45Z

    Used for log records and CLI output.
    """
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def file_slug_from_timestamp(dt: datetime | None = None) -> str:
    """
    Generate a filesystem-safe slug from a UTC timestamp.

    Format: YYYY-MM-DDTHH-MM-SSZ (hyphens instead of colons)

    Args:
        dt: Optional datetime to convert. If None, uses utc_now().
            Must be timezone-aware if provided.

    Returns:
        str: Filesystem-safe timestamp slug

    Raises:
        ValueError: If dt is provided but is naive (missing timezone)

    Examples:
        >>> fixed_time = datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC)
        >>> file_slug_from_timestamp(fixed_time)
        '2025-11-02T08-30-45Z'
    """
    if dt is None:
        dt = utc_now()

    if dt.tzinfo is None:
        raise ValueError(
            "Datetime must be timezone-aware (use timezone.utc). "
            "Got naive datetime. Use utc_now() or ensure dt has tzinfo set."
        )

    return dt.strftime("%Y-%m-%dT%H-%M-%SZ")
