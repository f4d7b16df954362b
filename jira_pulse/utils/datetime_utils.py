"""
Datetime Utility Functions

Parsing helper for the version dates Jira returns ("2026-02-10").
"""

from datetime import date


def parse_version_date(date_str: str | None) -> date | None:
    """
    Parse a version start/release date, returning None when absent or malformed.

    Version dates come from free-form release planning and are not trusted;
    an unparseable date is treated the same as a missing one.

    Examples:
        >>> parse_version_date("2024-06-01")
        datetime.date(2024, 6, 1)
        >>> parse_version_date("soon") is None
        True
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str.strip()[:10])
    except ValueError:
        return None
