"""
Jira REST API Response Transformers

Normalization boundary between raw Jira JSON and the domain models. There is
one parser per upstream entity shape; each fills defaults for optional fields
(status, assignee, priority may all be absent) and fails closed with
MalformedResponseError (an UpstreamError) when the payload is structurally
invalid.

Consumers never see raw Jira JSON.

Usage:
    from jira_pulse.collectors.jira_transformers import IssueTransformer

    # REST API returns:
    rest_response = {"issues": [{"key": "CB-1", "fields": {"status": {"name": "Done"}}}]}

    issues = IssueTransformer.parse_search_response(rest_response)
    # Result: [Issue(key="CB-1", summary="", status="Done", ...)]
"""

from typing import Any

from jira_pulse.async_http_client import MalformedResponseError
from jira_pulse.domain.constants import UNKNOWN_STATUS
from jira_pulse.domain.issue import Issue, IssueDetail, IssueLink, IssueRef
from jira_pulse.domain.project import Project, User
from jira_pulse.domain.version import Version


def _require_dict(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedResponseError(f"Malformed {what}: expected object, got {type(value).__name__}")
    return value


def _require_list(value: Any, what: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedResponseError(f"Malformed {what}: expected array, got {type(value).__name__}")
    return value


def _required_str(raw: dict[str, Any], name: str, what: str) -> str:
    value = raw.get(name)
    if value is None or value == "":
        raise MalformedResponseError(f"Malformed {what}: missing '{name}'")
    return str(value)


def _name_of(value: Any) -> str | None:
    """``{"name": "Done"}`` -> "Done"; anything else -> None."""
    if isinstance(value, dict):
        name = value.get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def _display_name_of(value: Any) -> str | None:
    if isinstance(value, dict):
        name = value.get("displayName")
        if isinstance(name, str) and name:
            return name
    return None


class ProjectTransformer:
    """Parses project and user payloads."""

    @staticmethod
    def parse_project(raw: Any) -> Project:
        """
        Parse a project from /project/search or /project/{key}.

        Raises:
            MalformedResponseError: If the payload is not an object or has no key
        """
        data = _require_dict(raw, "project")
        key = _required_str(data, "key", "project")
        return Project(
            id=str(data.get("id") or ""),
            key=key,
            name=str(data.get("name") or key),
            lead=_display_name_of(data.get("lead")),
        )

    @staticmethod
    def parse_project_page(payload: Any) -> tuple[list[Project], bool]:
        """
        Parse one page of /project/search.

        Returns:
            (projects, is_last) - is_last defaults to True when absent
        """
        data = _require_dict(payload, "project page")
        projects = [ProjectTransformer.parse_project(raw) for raw in _require_list(data.get("values"), "project list")]
        return projects, bool(data.get("isLast", True))

    @staticmethod
    def parse_user(raw: Any) -> User:
        data = _require_dict(raw, "user")
        account_id = _required_str(data, "accountId", "user")
        return User(account_id=account_id, display_name=str(data.get("displayName") or ""))

    @staticmethod
    def parse_users(payload: Any) -> list[User]:
        return [ProjectTransformer.parse_user(raw) for raw in _require_list(payload, "user list")]


class IssueTransformer:
    """
    Parses issue search results and issue detail payloads.

    Defaults: status and type "Unknown", priority "None", assignee None,
    summary "".
    """

    @staticmethod
    def parse_issue(raw: Any) -> Issue:
        """
        Parse one issue from a search result.

        Raises:
            MalformedResponseError: If the issue is not an object, has no key, or
                its fields are not an object
        """
        data = _require_dict(raw, "issue")
        key = _required_str(data, "key", "issue")
        fields = _require_dict(data.get("fields") or {}, f"fields of issue {key}")

        fix_versions = _require_list(fields.get("fixVersions"), f"fixVersions of issue {key}")
        fix_version_ids = tuple(
            str(version["id"]) for version in fix_versions if isinstance(version, dict) and version.get("id")
        )

        return Issue(
            key=key,
            summary=str(fields.get("summary") or ""),
            status=_name_of(fields.get("status")) or UNKNOWN_STATUS,
            priority=_name_of(fields.get("priority")) or "None",
            assignee=_display_name_of(fields.get("assignee")),
            type=_name_of(fields.get("issuetype")) or UNKNOWN_STATUS,
            created=fields.get("created"),
            updated=fields.get("updated"),
            fix_version_ids=fix_version_ids,
        )

    @staticmethod
    def parse_search_response(payload: Any) -> list[Issue]:
        """Parse a /search/jql response. A missing ``issues`` array means no issues."""
        data = _require_dict(payload, "search response")
        return [IssueTransformer.parse_issue(raw) for raw in _require_list(data.get("issues"), "issue list")]

    @staticmethod
    def parse_issue_ref(raw: Any) -> IssueRef:
        """Parent, subtask or epic child reference."""
        data = _require_dict(raw, "issue reference")
        fields = data.get("fields") if isinstance(data.get("fields"), dict) else {}
        return IssueRef(
            key=_required_str(data, "key", "issue reference"),
            summary=fields.get("summary"),
            type=_name_of(fields.get("issuetype")),
            status=_name_of(fields.get("status")),
        )

    @staticmethod
    def parse_issue_link(raw: Any) -> IssueLink | None:
        """
        Parse one issue link. Links that point at no issue yield None.

        The direction is "inward" when the upstream link carries an
        inwardIssue, "outward" otherwise.
        """
        data = _require_dict(raw, "issue link")
        inward = data.get("inwardIssue")
        linked = inward or data.get("outwardIssue")
        if not isinstance(linked, dict):
            return None

        link_type = data.get("type") if isinstance(data.get("type"), dict) else {}
        direction = "inward" if inward else "outward"
        ref = IssueTransformer.parse_issue_ref(linked)
        return IssueLink(
            id=str(data.get("id") or ""),
            type=str(link_type.get("name") or ""),
            direction=direction,
            description=link_type.get(direction),
            key=ref.key,
            summary=ref.summary,
            status=ref.status,
            issue_type=ref.type,
        )

    @staticmethod
    def flatten_description(document: Any) -> str:
        """
        Flatten an Atlassian Document Format body to plain text.

        Inline text nodes of each top-level block are joined with spaces;
        blocks are joined with newlines. Anything unexpected flattens to "".

        Example:
            >>> IssueTransformer.flatten_description(
            ...     {"content": [{"content": [{"text": "Hello"}, {"text": "world"}]}]}
            ... )
            'Hello world'
        """
        if isinstance(document, str):
            return document
        if not isinstance(document, dict) or not isinstance(document.get("content"), list):
            return ""

        lines = []
        for block in document["content"]:
            inline = block.get("content") if isinstance(block, dict) else None
            if not isinstance(inline, list):
                lines.append("")
                continue
            lines.append(" ".join(str(node.get("text") or "") for node in inline if isinstance(node, dict)))
        return "\n".join(lines)

    @staticmethod
    def parse_issue_detail(raw: Any, epic_children: list[Any] | None = None) -> IssueDetail:
        """
        Parse a /issue/{key} payload into the full issue view.

        Args:
            raw: Issue payload
            epic_children: Raw child issues found by the epic children search

        Raises:
            MalformedResponseError: If the payload is structurally invalid
        """
        issue = IssueTransformer.parse_issue(raw)
        fields = raw.get("fields") or {}

        parent_raw = fields.get("parent")
        parent = IssueTransformer.parse_issue_ref(parent_raw) if isinstance(parent_raw, dict) else None

        children = [
            IssueTransformer.parse_issue_ref(child)
            for child in _require_list(fields.get("subtasks"), f"subtasks of issue {issue.key}") + list(epic_children or [])
        ]

        links = [
            link
            for link in (
                IssueTransformer.parse_issue_link(item)
                for item in _require_list(fields.get("issuelinks"), f"links of issue {issue.key}")
            )
            if link is not None
        ]

        labels = [str(label) for label in _require_list(fields.get("labels"), f"labels of issue {issue.key}")]
        story_points = fields.get("customfield_10016")

        return IssueDetail(
            issue=issue,
            description=IssueTransformer.flatten_description(fields.get("description")),
            reporter=_display_name_of(fields.get("reporter")),
            labels=labels,
            due_date=fields.get("duedate") or None,
            story_points=story_points if isinstance(story_points, (int, float)) and story_points else None,
            parent=parent,
            children=children,
            links=links,
        )


class VersionTransformer:
    """Parses version payloads, deriving the status from archived/released."""

    @staticmethod
    def parse_version(raw: Any) -> Version:
        """
        Raises:
            MalformedResponseError: If the payload is not an object or has no id
        """
        data = _require_dict(raw, "version")
        return Version(
            id=_required_str(data, "id", "version"),
            name=str(data.get("name") or ""),
            status=Version.derive_status(bool(data.get("archived")), bool(data.get("released"))),
            description=data.get("description") or None,
            start_date=data.get("startDate") or None,
            release_date=data.get("releaseDate") or None,
        )

    @staticmethod
    def parse_versions(payload: Any) -> list[Version]:
        return [VersionTransformer.parse_version(raw) for raw in _require_list(payload, "version list")]
