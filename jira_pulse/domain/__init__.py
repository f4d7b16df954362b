"""
Domain Models - Type-safe data structures for the aggregation pipeline

This package contains dataclasses representing business domain concepts:
    - project: Project, User, TaskCounts, ProjectRecord
    - issue: Issue, IssueRef, IssueLink, IssueDetail
    - version: Version, IssueCounts
    - health: ProjectHealth, ProjectTaskStats
    - dashboard: DashboardEntry, DashboardSummary

Usage:
    from jira_pulse.domain import TaskCounts

    counts = TaskCounts.from_statuses(["To Do", "Blocked", "Done"])
    print(counts.bucket("blocked"))
"""

# Import domain models for convenient access
from .dashboard import DashboardEntry, DashboardSummary
from .health import ProjectHealth, ProjectTaskStats
from .issue import Issue, IssueDetail, IssueLink, IssueRef
from .project import Project, ProjectRecord, TaskCounts, User
from .version import IssueCounts, Version

__all__ = [
    # Project domain
    "Project",
    "User",
    "TaskCounts",
    "ProjectRecord",
    # Issue domain
    "Issue",
    "IssueRef",
    "IssueLink",
    "IssueDetail",
    # Version domain
    "Version",
    "IssueCounts",
    # Health domain
    "ProjectHealth",
    "ProjectTaskStats",
    # Dashboard
    "DashboardEntry",
    "DashboardSummary",
]
