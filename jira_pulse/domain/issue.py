"""
Issue domain models

Normalized, read-only views of Jira issues:
    - Issue: flat issue row used by task counts and issue lists
    - IssueRef: compact reference to a parent or child issue
    - IssueLink: one directional link to another issue
    - IssueDetail: full issue view including parent, children and links
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Issue:
    """
    A normalized Jira issue.

    Missing upstream fields are filled by the parser: status and type
    default to "Unknown", priority to "None", assignee to None.

    Attributes:
        key: Issue key (e.g., "CB-12")
        summary: One-line summary
        status: Status display name
        priority: Priority display name
        assignee: Assignee display name, or None when unassigned
        type: Issue type name (Task, Story, Epic, ...)
        created: Raw upstream creation timestamp
        updated: Raw upstream last-update timestamp
        fix_version_ids: Ids of the versions this issue is fixed in
    """

    key: str
    summary: str
    status: str
    priority: str = "None"
    assignee: str | None = None
    type: str = "Unknown"
    created: str | None = None
    updated: str | None = None
    fix_version_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "type": self.type,
            "priority": self.priority,
            "assignee": self.assignee,
            "created": self.created,
            "updated": self.updated,
        }


@dataclass(frozen=True)
class IssueRef:
    """Parent or child issue reference. Status is not known for parents."""

    key: str
    summary: str | None = None
    type: str | None = None
    status: str | None = None

    def to_parent_dict(self) -> dict[str, Any]:
        return {"key": self.key, "summary": self.summary, "type": self.type}

    def to_child_dict(self) -> dict[str, Any]:
        return {"key": self.key, "summary": self.summary, "status": self.status, "type": self.type}


@dataclass(frozen=True)
class IssueLink:
    """
    A link from the viewed issue to another issue.

    Attributes:
        id: Upstream link id
        type: Link type name (e.g., "Blocks")
        direction: "inward" or "outward"
        description: Direction-specific phrase (e.g., "is blocked by")
        key: Linked issue key
        summary: Linked issue summary
        status: Linked issue status
        issue_type: Linked issue type
    """

    id: str
    type: str
    direction: str
    description: str | None
    key: str
    summary: str | None = None
    status: str | None = None
    issue_type: str | None = None

    def __post_init__(self) -> None:
        if self.direction not in ("inward", "outward"):
            raise ValueError(f"direction must be 'inward' or 'outward', got {self.direction!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "direction": self.direction,
            "description": self.description,
            "key": self.key,
            "summary": self.summary,
            "status": self.status,
            "issueType": self.issue_type,
        }


@dataclass
class IssueDetail:
    """
    Full issue view served by the issue detail endpoint.

    Children are the issue's subtasks followed by its epic children
    (only fetched for epics).

    Example:
        detail = IssueDetail(issue=issue, description="Steps to reproduce...")
        detail.children.append(IssueRef(key="CB-13", summary="Sub", status="To Do", type="Sub-task"))
    """

    issue: Issue
    description: str = ""
    reporter: str | None = None
    labels: list[str] = field(default_factory=list)
    due_date: str | None = None
    story_points: float | None = None
    parent: IssueRef | None = None
    children: list[IssueRef] = field(default_factory=list)
    links: list[IssueLink] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.issue.key

    @property
    def is_epic(self) -> bool:
        return self.issue.type == "Epic"

    def to_dict(self) -> dict[str, Any]:
        data = self.issue.to_dict()
        data.update(
            {
                "description": self.description,
                "reporter": self.reporter,
                "labels": list(self.labels),
                "dueDate": self.due_date,
                "storyPoints": self.story_points,
                "parent": self.parent.to_parent_dict() if self.parent else None,
                "children": [child.to_child_dict() for child in self.children],
                "links": [link.to_dict() for link in self.links],
            }
        )
        return data
