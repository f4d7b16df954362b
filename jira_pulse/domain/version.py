"""
Version (release) domain models

A version's status is derived from the upstream archived/released flags;
the raw boolean pair never leaves the normalization boundary.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any

from jira_pulse.utils.datetime_utils import parse_version_date

from .constants import ARCHIVED, RELEASED, UNRELEASED


@dataclass(frozen=True)
class IssueCounts:
    """
    Per-version issue totals.

    Attributes:
        issues_fixed_count: Issues in the version whose status is done/fixed
        total_issues: All issues carrying the version as a fix version
    """

    issues_fixed_count: int = 0
    total_issues: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"issuesFixedCount": self.issues_fixed_count, "totalIssues": self.total_issues}


@dataclass(frozen=True)
class Version:
    """
    A project version.

    Attributes:
        id: Upstream version id
        name: Version name (e.g., "v2.1")
        status: "Released", "Archived" or "Unreleased"
        description: Optional free-text description
        start_date: Raw start date ("YYYY-MM-DD"), if set
        release_date: Raw release date ("YYYY-MM-DD"), if set
        issue_counts: Computed issue totals (zeros until computed)
    """

    id: str
    name: str
    status: str = UNRELEASED
    description: str | None = None
    start_date: str | None = None
    release_date: str | None = None
    issue_counts: IssueCounts = field(default_factory=IssueCounts)

    def __post_init__(self) -> None:
        if self.status not in (RELEASED, ARCHIVED, UNRELEASED):
            raise ValueError(f"Unknown version status: {self.status!r}")

    @staticmethod
    def derive_status(archived: bool, released: bool) -> str:
        """Archived wins over released."""
        if archived:
            return ARCHIVED
        if released:
            return RELEASED
        return UNRELEASED

    @property
    def is_archived(self) -> bool:
        return self.status == ARCHIVED

    @property
    def sort_date(self) -> date | None:
        """Release date, falling back to start date. Malformed dates count as missing."""
        return parse_version_date(self.release_date) or parse_version_date(self.start_date)

    def with_issue_counts(self, issue_counts: IssueCounts) -> "Version":
        return replace(self, issue_counts=issue_counts)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name, "status": self.status}
        if self.description:
            data["description"] = self.description
        if self.start_date:
            data["startDate"] = self.start_date
        if self.release_date:
            data["releaseDate"] = self.release_date
        data["issueCounts"] = self.issue_counts.to_dict()
        return data
