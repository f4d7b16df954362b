"""
Version Resolver

Per-version issue counts and "latest version" selection.

Ordering rule used by resolve_latest (ascending):
  - both versions dated  -> earlier date first (release date, else start date)
  - only one dated       -> the undated version first
  - neither dated        -> by name, ignoring case
The latest version is the last non-archived version in that order.
"""

from collections.abc import Iterable, Sequence
from functools import cmp_to_key

from jira_pulse.domain.constants import DONE_STATUSES
from jira_pulse.domain.issue import Issue
from jira_pulse.domain.version import IssueCounts, Version


def _name_key(name: str) -> tuple[str, str]:
    # Case-insensitive; on ties lowercase sorts before uppercase
    return name.casefold(), name.swapcase()


def _compare_versions(a: Version, b: Version) -> int:
    date_a, date_b = a.sort_date, b.sort_date
    if date_a is not None and date_b is not None:
        return (date_a > date_b) - (date_a < date_b)
    # Dated versions sort after undated placeholders
    if date_a is not None:
        return 1
    if date_b is not None:
        return -1
    name_a, name_b = _name_key(a.name), _name_key(b.name)
    return (name_a > name_b) - (name_a < name_b)


def sort_versions(versions: Iterable[Version]) -> list[Version]:
    """Stable ascending sort of non-archived versions."""
    candidates = [version for version in versions if not version.is_archived]
    return sorted(candidates, key=cmp_to_key(_compare_versions))


def resolve_latest(versions: Iterable[Version] | None) -> Version | None:
    """
    Select the latest non-archived version.

    Never raises; unparseable dates count as missing.

    Example:
        >>> resolve_latest([]) is None
        True
    """
    ordered = sort_versions(versions or [])
    return ordered[-1] if ordered else None


def _is_fixed(issue: Issue) -> bool:
    return issue.status.strip().casefold() in DONE_STATUSES


def count_fixed_issues(issues: Iterable[Issue]) -> IssueCounts:
    """
    Counts for issues already known to belong to one version.

    Used when the issues come from a fixVersion search rather than the
    whole project.
    """
    fixed_flags = [_is_fixed(issue) for issue in issues]
    return IssueCounts(issues_fixed_count=sum(fixed_flags), total_issues=len(fixed_flags))


def compute_issue_counts(versions: Sequence[Version], issues: Iterable[Issue]) -> list[Version]:
    """
    Fill every version's issueCounts from the issues fixed in it.

    An issue counts toward each of its fix versions; it counts as fixed when
    its status is Done or Fixed (any case). Versions without issues get zeros.

    Returns:
        New Version objects in the input order
    """
    totals: dict[str, int] = {}
    fixed: dict[str, int] = {}
    for issue in issues:
        is_fixed = _is_fixed(issue)
        for version_id in issue.fix_version_ids:
            totals[version_id] = totals.get(version_id, 0) + 1
            if is_fixed:
                fixed[version_id] = fixed.get(version_id, 0) + 1

    return [
        version.with_issue_counts(
            IssueCounts(issues_fixed_count=fixed.get(version.id, 0), total_issues=totals.get(version.id, 0))
        )
        for version in versions
    ]
