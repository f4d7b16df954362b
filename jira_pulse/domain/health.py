"""
Project Health domain models

Derived, never stored:
    - ProjectHealth: health classification plus the inputs it was derived from
    - ProjectTaskStats: done/in-progress/blocked/to-do breakdown of a project
"""

from dataclasses import dataclass
from typing import Any

from .constants import AT_RISK, HEALTH_STATUSES, HEALTHY


@dataclass(frozen=True)
class ProjectHealth:
    """Health classification for a single project.

    Attributes:
        status: "Healthy", "At Risk" or "Critical"
        progress: Release progress percentage (0-100)
        total_project_issues: All issues in the project
        blocked: Issues in the "Blocked" status
        version_fixed: Issues in "Done" or "Fixed" (project-wide)
        version_total: Target issue count of the latest version

    Example:
        health = ProjectHealth(
            status="At Risk",
            progress=50,
            total_project_issues=40,
            blocked=1,
            version_fixed=10,
            version_total=20,
        )
        health.status_class  # "status-caution"
    """

    status: str
    progress: int
    total_project_issues: int = 0
    blocked: int = 0
    version_fixed: int = 0
    version_total: int = 0

    def __post_init__(self) -> None:
        if self.status not in HEALTH_STATUSES:
            raise ValueError(f"status must be one of {HEALTH_STATUSES}, got {self.status!r}")
        if not 0 <= self.progress <= 100:
            raise ValueError(f"progress must be between 0 and 100, got {self.progress}")

    @property
    def status_class(self) -> str:
        if self.status == HEALTHY:
            return "status-good"
        if self.status == AT_RISK:
            return "status-caution"
        return "status-action"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "statusClass": self.status_class,
            "progress": self.progress,
            "totalProjectIssues": self.total_project_issues,
            "blocked": self.blocked,
            "versionFixed": self.version_fixed,
            "versionTotal": self.version_total,
        }


@dataclass(frozen=True)
class ProjectTaskStats:
    """
    Status breakdown shown on a project page.

    done + in_progress + blocked + todo == total.
    """

    total: int = 0
    todo: int = 0
    in_progress: int = 0
    blocked: int = 0
    done: int = 0
    progress: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "todo": self.todo,
            "inProgress": self.in_progress,
            "blocked": self.blocked,
            "done": self.done,
            "progress": self.progress,
        }
