"""
Dashboard domain models

    - DashboardEntry: one project's row (record + latest version + health, or an error)
    - DashboardSummary: organisation-wide counts by health status
"""

from dataclasses import dataclass
from typing import Any

from .health import ProjectHealth
from .project import ProjectRecord
from .version import Version


@dataclass
class DashboardEntry:
    """
    One project's dashboard row.

    Exactly one of (record, error) is set. A failed entry carries the
    message of the exception that aborted that project's aggregation.

    Attributes:
        project_key: Key the entry was requested for
        record: Aggregated project data
        latest_version: Resolved latest version, None if the project has none
        health: Derived health, None for failed entries
        error: Failure message for this project only
    """

    project_key: str
    record: ProjectRecord | None = None
    latest_version: Version | None = None
    health: ProjectHealth | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if (self.record is None) == (self.error is None):
            raise ValueError("DashboardEntry needs exactly one of record or error")

    @classmethod
    def failed(cls, project_key: str, error: str) -> "DashboardEntry":
        return cls(project_key=project_key, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        if self.record is None:
            return {"projectKey": self.project_key, "error": self.error}

        data: dict[str, Any] = {"projectKey": self.project_key}
        data.update(self.record.to_dict())
        data["latestVersion"] = self.latest_version.to_dict() if self.latest_version else None
        data["health"] = self.health.to_dict() if self.health else None
        return data


@dataclass(frozen=True)
class DashboardSummary:
    """Counts of projects per health status."""

    total: int = 0
    healthy: int = 0
    at_risk: int = 0
    critical: int = 0
    failed: int = 0

    @property
    def health_rate(self) -> float:
        """Percentage of successfully aggregated projects that are Healthy."""
        assessed = self.total - self.failed
        return (self.healthy / assessed * 100) if assessed > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "healthy": self.healthy,
            "atRisk": self.at_risk,
            "critical": self.critical,
            "failed": self.failed,
            "healthRate": round(self.health_rate, 1),
        }
