"""
Project Health Calculator

Pure functions mapping status counts and the latest version to a health
classification. No I/O.

Health rules (first match wins):
  progress < 40 or blocked >= 5  -> Critical
  progress < 70 or blocked >= 2  -> At Risk
  otherwise                      -> Healthy

Progress is versionFixed / versionTotal where versionFixed counts Done and
Fixed issues across the whole project, and versionTotal is the latest
version's issuesFixedCount.
"""

import math
from collections.abc import Iterable

from jira_pulse.domain.constants import (
    AT_RISK,
    BLOCKED_STATUS,
    CRITICAL,
    DONE_STATUSES,
    HEALTHY,
    IN_PROGRESS_STATUSES,
    health_thresholds,
)
from jira_pulse.domain.dashboard import DashboardEntry, DashboardSummary
from jira_pulse.domain.health import ProjectHealth, ProjectTaskStats
from jira_pulse.domain.project import TaskCounts
from jira_pulse.domain.version import Version


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage clamped to 0..100; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return max(0, min(100, _round_half_up(part / whole * 100)))


def classify(progress: int, blocked: int) -> str:
    """
    Map progress and blocked count to a health status.

    Example:
        >>> classify(80, 2)
        'At Risk'
    """
    if progress < health_thresholds.CRITICAL_PROGRESS or blocked >= health_thresholds.CRITICAL_BLOCKED:
        return CRITICAL
    if progress < health_thresholds.AT_RISK_PROGRESS or blocked >= health_thresholds.AT_RISK_BLOCKED:
        return AT_RISK
    return HEALTHY


def compute_health(task_counts: TaskCounts, latest_version: Version | None) -> ProjectHealth:
    """
    Derive project health.

    Args:
        task_counts: Project-wide status counts
        latest_version: Resolved latest version, or None when the project has none

    Returns:
        ProjectHealth with progress in 0..100
    """
    blocked = task_counts.bucket(BLOCKED_STATUS)
    version_fixed = sum(task_counts.bucket(status) for status in DONE_STATUSES)
    version_total = latest_version.issue_counts.issues_fixed_count if latest_version else 0
    progress = percentage(version_fixed, version_total)

    return ProjectHealth(
        status=classify(progress, blocked),
        progress=progress,
        total_project_issues=task_counts.total,
        blocked=blocked,
        version_fixed=version_fixed,
        version_total=version_total,
    )


def compute_task_stats(task_counts: TaskCounts) -> ProjectTaskStats:
    """
    Break status counts into done / in progress / blocked / to do.

    Done is Done or Fixed, in progress is In Progress or In Review; any other
    status counts as to do.
    """
    done = in_progress = blocked = todo = 0
    for status, count in task_counts.counts.items():
        name = status.strip().casefold()
        if name in DONE_STATUSES:
            done += count
        elif name in IN_PROGRESS_STATUSES:
            in_progress += count
        elif name == BLOCKED_STATUS:
            blocked += count
        else:
            todo += count

    return ProjectTaskStats(
        total=task_counts.total,
        todo=todo,
        in_progress=in_progress,
        blocked=blocked,
        done=done,
        progress=percentage(done, task_counts.total),
    )


def summarize(entries: Iterable[DashboardEntry]) -> DashboardSummary:
    """Count dashboard entries per health status."""
    total = healthy = at_risk = critical = failed = 0
    for entry in entries:
        total += 1
        if entry.health is None:
            failed += 1
        elif entry.health.status == HEALTHY:
            healthy += 1
        elif entry.health.status == AT_RISK:
            at_risk += 1
        else:
            critical += 1
    return DashboardSummary(total=total, healthy=healthy, at_risk=at_risk, critical=critical, failed=failed)
