"""
Application Constants

Centralized thresholds and status vocabularies used by the aggregation
pipeline and the health derivation rules.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthThresholds:
    """
    Health classification thresholds.

    Rules are evaluated in order; the first match wins:
        progress < CRITICAL_PROGRESS or blocked >= CRITICAL_BLOCKED -> Critical
        progress < AT_RISK_PROGRESS or blocked >= AT_RISK_BLOCKED   -> At Risk
        otherwise                                                   -> Healthy

    Example:
        >>> health_thresholds.CRITICAL_PROGRESS
        40
    """

    CRITICAL_PROGRESS: int = 40
    """Version progress (percent) below which a project is Critical"""

    AT_RISK_PROGRESS: int = 70
    """Version progress (percent) below which a project is At Risk"""

    CRITICAL_BLOCKED: int = 5
    """Blocked issue count at which a project is Critical"""

    AT_RISK_BLOCKED: int = 2
    """Blocked issue count at which a project is At Risk"""


@dataclass(frozen=True)
class SearchConfig:
    """
    Issue search bounds.

    Attributes:
        DEFAULT_MAX_RESULTS: maxResults sent with every search request
        MAX_RESULTS_CAP: Upper bound accepted for maxResults
        MAX_PROJECT_PAGES: Upper bound on project listing pages followed
        PROJECT_PAGE_SIZE: Projects requested per listing page
    """

    DEFAULT_MAX_RESULTS: int = 1000
    MAX_RESULTS_CAP: int = 1000
    MAX_PROJECT_PAGES: int = 20
    PROJECT_PAGE_SIZE: int = 50


# Health status labels
HEALTHY = "Healthy"
AT_RISK = "At Risk"
CRITICAL = "Critical"
HEALTH_STATUSES: tuple[str, ...] = (HEALTHY, AT_RISK, CRITICAL)

# Version status labels (derived from the upstream archived/released flags)
RELEASED = "Released"
ARCHIVED = "Archived"
UNRELEASED = "Unreleased"

# Status bucket names, lowercase for case-insensitive matching
BLOCKED_STATUS = "blocked"
DONE_STATUSES: tuple[str, ...] = ("done", "fixed")
IN_PROGRESS_STATUSES: tuple[str, ...] = ("in progress", "in review")

UNKNOWN_STATUS = "Unknown"

health_thresholds = HealthThresholds()
search_config = SearchConfig()
