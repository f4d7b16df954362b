"""
JQL Query Builders

Composes the JQL filter expressions and bounded search request bodies used
against Jira's POST /rest/api/3/search/jql endpoint.

Every key and id is validated by JQLValidator before it is placed into a
query, so a malformed key fails with ValidationError before any network call.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from jira_pulse.domain.constants import search_config
from jira_pulse.security import JQLValidator, ValidationError

# Field projections per view
TASK_FIELDS: tuple[str, ...] = ("status", "summary")
AGGREGATION_FIELDS: tuple[str, ...] = (
    "status",
    "summary",
    "issuetype",
    "priority",
    "assignee",
    "created",
    "updated",
    "fixVersions",
)
VERSION_COUNT_FIELDS: tuple[str, ...] = ("status", "fixVersions")
VERSION_ISSUE_FIELDS: tuple[str, ...] = ("summary", "status", "priority", "assignee")
ALL_ISSUES_FIELDS: tuple[str, ...] = ("summary", "status", "issuetype", "priority", "assignee", "created", "updated")
EPIC_CHILD_FIELDS: tuple[str, ...] = ("summary", "status", "issuetype", "priority")
ISSUE_DETAIL_FIELDS: tuple[str, ...] = (
    "summary",
    "description",
    "status",
    "assignee",
    "reporter",
    "priority",
    "labels",
    "duedate",
    "issuetype",
    "parent",
    "subtasks",
    "created",
    "updated",
    "customfield_10016",
    "issuelinks",
)

ALL_ISSUES_TYPES: tuple[str, ...] = ("Task", "Story", "Epic")


@dataclass(frozen=True)
class SearchRequest:
    """
    Bounded issue search request.

    Attributes:
        jql: Filter expression
        fields: Field projection
        max_results: Result cap (1-1000)

    Example:
        request = SearchRequest(JQLQueryBuilder.project_filter("CB"), ["status"])
        request.to_body()
        # {"jql": 'project = "CB"', "fields": ["status"], "maxResults": 1000}
    """

    jql: str
    fields: Sequence[str] = field(default_factory=lambda: list(TASK_FIELDS))
    max_results: int = search_config.DEFAULT_MAX_RESULTS

    def __post_init__(self) -> None:
        if not self.jql or not self.jql.strip():
            raise ValidationError("JQL query cannot be empty")
        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int):
            raise ValidationError(f"maxResults must be an integer, got {type(self.max_results)}")
        if not 1 <= self.max_results <= search_config.MAX_RESULTS_CAP:
            raise ValidationError(
                f"maxResults must be between 1 and {search_config.MAX_RESULTS_CAP}, got {self.max_results}"
            )

    def to_body(self) -> dict[str, Any]:
        return {"jql": self.jql, "fields": list(self.fields), "maxResults": self.max_results}


class JQLQueryBuilder:
    """
    Builds JQL filter expressions from validated inputs.

    Project keys are rendered as quoted literals; version ids and issue keys
    are whitelisted to characters that need no quoting.
    """

    @staticmethod
    def project_filter(project_key: str) -> str:
        """
        Example:
            >>> JQLQueryBuilder.project_filter("CB")
            'project = "CB"'
        """
        safe_key = JQLValidator.validate_project_key(project_key)
        return f"project = {JQLValidator.quote(safe_key)}"

    @staticmethod
    def version_filter(project_key: str, version_id: str | int) -> str:
        """
        Example:
            >>> JQLQueryBuilder.version_filter("CB", 10001)
            'project = "CB" AND fixVersion = 10001'
        """
        safe_id = JQLValidator.validate_version_id(version_id)
        return f"{JQLQueryBuilder.project_filter(project_key)} AND fixVersion = {safe_id}"

    @staticmethod
    def epic_children_filter(project_key: str, epic_key: str) -> str:
        """
        Children of an epic, linked either through the legacy "Epic Link"
        field or the parent field.
        """
        safe_epic = JQLValidator.validate_issue_key(epic_key)
        return f'{JQLQueryBuilder.project_filter(project_key)} AND ("Epic Link" = {safe_epic} OR parent = {safe_epic})'

    @staticmethod
    def issue_types_filter(project_key: str, issue_types: Iterable[str] = ALL_ISSUES_TYPES) -> str:
        types = [JQLValidator.validate_issue_type(issue_type) for issue_type in issue_types]
        if not types:
            raise ValidationError("At least one issue type is required")
        return f"{JQLQueryBuilder.project_filter(project_key)} AND issuetype IN ({', '.join(types)})"
