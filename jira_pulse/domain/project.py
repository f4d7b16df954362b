"""
Project domain models - Projects, members and status roll-ups

Represents what the dashboard shows per project:
    - Project: identity and lead
    - User: an assignable project member
    - TaskCounts: issue totals grouped by status name
    - ProjectRecord: merged result of one project's aggregation cycle
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from .constants import UNKNOWN_STATUS
from .issue import Issue
from .version import Version


@dataclass(frozen=True)
class Project:
    """
    A Jira project.

    Attributes:
        id: Upstream project id
        key: Project key (e.g., "CB")
        name: Display name
        lead: Display name of the project lead, or None if unknown
    """

    id: str
    key: str
    name: str
    lead: str | None = None

    @classmethod
    def placeholder(cls, key: str) -> "Project":
        """Stand-in used when project metadata could not be fetched."""
        return cls(id="", key=key, name=key, lead=None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "key": self.key,
            "name": self.name,
            "lead": {"displayName": self.lead} if self.lead else None,
        }


@dataclass(frozen=True)
class User:
    """An assignable user of a project."""

    account_id: str
    display_name: str

    def to_dict(self) -> dict[str, str]:
        return {"accountId": self.account_id, "displayName": self.display_name}


@dataclass
class TaskCounts:
    """
    Issue totals grouped by status name.

    Invariant: sum(counts.values()) == total when built from one issue set.

    Attributes:
        total: Number of issues
        counts: Status display name -> number of issues

    Example:
        counts = TaskCounts.from_statuses(["To Do", "Done", "Done"])
        counts.total        # 3
        counts.bucket("done")  # 2
    """

    total: int = 0
    counts: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}")
        if any(value < 0 for value in self.counts.values()):
            raise ValueError("status counts must be >= 0")

    @classmethod
    def from_statuses(cls, statuses: Iterable[str | None]) -> "TaskCounts":
        """
        Group status names into counts.

        Names are trimmed and keep their display case; missing or blank
        names are counted as "Unknown".
        """
        counts: dict[str, int] = {}
        total = 0
        for status in statuses:
            name = (status or "").strip() or UNKNOWN_STATUS
            counts[name] = counts.get(name, 0) + 1
            total += 1
        return cls(total=total, counts=counts)

    @classmethod
    def from_issues(cls, issues: Iterable[Issue]) -> "TaskCounts":
        return cls.from_statuses(issue.status for issue in issues)

    def bucket(self, name: str) -> int:
        """
        Count for one status bucket, matched case-insensitively.

        A key spelled exactly like ``name`` (or its title-cased form) wins;
        otherwise the first key that matches ignoring case is used. Buckets
        are never summed together.
        """
        for candidate in (name, name.title()):
            if candidate in self.counts:
                return self.counts[candidate]
        wanted = name.casefold()
        for key, value in self.counts.items():
            if key.strip().casefold() == wanted:
                return value
        return 0

    def to_dict(self) -> dict[str, Any]:
        return {"total": self.total, "counts": dict(self.counts)}


@dataclass
class ProjectRecord:
    """
    Merged result of one project's aggregation cycle.

    Attributes:
        project: Project metadata (placeholder if its fetch failed)
        task_counts: Issue counts by status
        versions: Project versions (empty if the version fetch failed)
        members: Number of assignable users
        issues: Issues used for derivations (not part of the dashboard payload)
        degraded: Names of sub-fetches that failed and were defaulted
    """

    project: Project
    task_counts: TaskCounts
    versions: list[Version] = field(default_factory=list)
    members: int = 0
    issues: list[Issue] = field(default_factory=list)
    degraded: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.project.key

    def to_dict(self) -> dict[str, Any]:
        data = self.project.to_dict()
        data.update(
            {
                "taskCounts": self.task_counts.to_dict(),
                "versions": [version.to_dict() for version in self.versions],
                "members": self.members,
                "degraded": list(self.degraded),
            }
        )
        return data
