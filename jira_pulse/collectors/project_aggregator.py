"""
Project Aggregator

Fans out the upstream calls needed for one project and merges the results
into a normalized ProjectRecord.

Multi-source aggregation (aggregate):
    - issue search, version list and assignable users (plus project metadata
      when not already known) are issued concurrently
    - each sub-fetch settles into a FetchOutcome; a failed outcome is replaced
      by a typed empty default and logged as a warning
    - one upstream outage degrades the record, it never aborts it

Single-purpose views (get_tasks, get_versions, get_issue_detail, ...):
    - errors propagate to the caller as UpstreamError / NotFoundError

No health or latest-version derivation happens here (see jira_pulse.scoring).
"""

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from jira_pulse.collectors.jira_rest_client import JiraRESTClient
from jira_pulse.collectors.jira_transformers import IssueTransformer, ProjectTransformer, VersionTransformer
from jira_pulse.collectors.jql_queries import (
    AGGREGATION_FIELDS,
    ALL_ISSUES_FIELDS,
    EPIC_CHILD_FIELDS,
    TASK_FIELDS,
    VERSION_COUNT_FIELDS,
    VERSION_ISSUE_FIELDS,
    JQLQueryBuilder,
    SearchRequest,
)
from jira_pulse.core import get_logger
from jira_pulse.domain.constants import search_config
from jira_pulse.domain.health import ProjectTaskStats
from jira_pulse.domain.issue import Issue, IssueDetail
from jira_pulse.domain.project import Project, ProjectRecord, TaskCounts, User
from jira_pulse.domain.version import Version
from jira_pulse.scoring.health_calculator import compute_task_stats
from jira_pulse.scoring.version_resolver import compute_issue_counts, count_fixed_issues
from jira_pulse.security import JQLValidator
from jira_pulse.utils.error_handling import log_and_continue, log_and_return_default

T = TypeVar("T")


@dataclass(frozen=True)
class FetchOutcome(Generic[T]):
    """
    Settled result of one sub-fetch: either a value or the error that failed it.

    Example:
        outcome = FetchOutcome.from_result("versions", result)
        versions = outcome.value_or([], logger, {"project_key": "CB"})
    """

    name: str
    value: T | None = None
    error: Exception | None = None

    @classmethod
    def from_result(cls, name: str, result: Any) -> "FetchOutcome[Any]":
        """Wrap one asyncio.gather(return_exceptions=True) result."""
        if isinstance(result, Exception):
            return cls(name=name, error=result)
        if isinstance(result, BaseException):
            # Cancellation and interpreter exits are not sub-fetch failures
            raise result
        return cls(name=name, value=result)

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T, logger: logging.Logger, context: dict[str, Any]) -> T:
        """Return the value, or log the failure and return ``default``."""
        if self.error is not None:
            result: T = log_and_return_default(
                logger,
                self.error,
                context={**context, "sub_fetch": self.name},
                default_value=default,
                error_type=f"{self.name.capitalize()} fetch",
            )
            return result
        return self.value  # type: ignore[return-value]


class ProjectAggregator:
    """
    Builds per-project views from the Jira REST API.

    One aggregator is created per request; it holds no state between calls.
    """

    def __init__(
        self,
        client: JiraRESTClient,
        logger: logging.Logger | None = None,
        max_results: int = search_config.DEFAULT_MAX_RESULTS,
        max_concurrency: int = 5,
    ):
        """
        Args:
            client: Jira REST client bound to an open HTTP client
            logger: Logger for degraded sub-fetches (default: module logger)
            max_results: Result cap for every issue search
            max_concurrency: Projects whose task counts are fetched at once by list_projects
        """
        self.client = client
        self.logger = logger or get_logger(__name__)
        self.max_results = max_results
        self.max_concurrency = max_concurrency

    # ------------------------------------------------------------------
    # Multi-source aggregation
    # ------------------------------------------------------------------

    async def aggregate(self, project_key: str, project: Project | None = None) -> ProjectRecord:
        """
        Aggregate one project.

        Args:
            project_key: Project key (validated before any network call)
            project: Already-known project metadata; fetched when None

        Returns:
            ProjectRecord, with ``degraded`` naming every defaulted sub-fetch

        Raises:
            ValidationError: If the project key is malformed
        """
        key = JQLValidator.validate_project_key(project_key)
        request = SearchRequest(JQLQueryBuilder.project_filter(key), AGGREGATION_FIELDS, self.max_results)

        fetches: dict[str, Awaitable[Any]] = {
            "issues": self._search(request),
            "versions": self._fetch_versions(key),
            "users": self._fetch_users(key),
        }
        if project is None:
            fetches["project"] = self._fetch_project(key)

        results = await asyncio.gather(*fetches.values(), return_exceptions=True)
        outcomes = {name: FetchOutcome.from_result(name, result) for name, result in zip(fetches, results, strict=True)}

        context = {"project_key": key}
        issues: list[Issue] = outcomes["issues"].value_or([], self.logger, context)
        versions: list[Version] = outcomes["versions"].value_or([], self.logger, context)
        users: list[User] = outcomes["users"].value_or([], self.logger, context)
        if project is None:
            project = outcomes["project"].value_or(Project.placeholder(key), self.logger, context)

        degraded = [name for name, outcome in outcomes.items() if not outcome.ok]
        record = ProjectRecord(
            project=project,
            task_counts=TaskCounts.from_issues(issues),
            versions=versions,
            members=len(users),
            issues=issues,
            degraded=degraded,
        )

        self.logger.info(
            f"Aggregated project {key}",
            extra={
                "project_key": key,
                "total_issues": record.task_counts.total,
                "versions": len(versions),
                "members": record.members,
                "degraded": degraded,
            },
        )
        return record

    async def list_projects(self) -> list[Project]:
        """
        List all projects, following pages until ``isLast``.

        The page count is bounded; a listing longer than the bound is
        truncated with a warning.
        """
        projects: list[Project] = []
        start_at = 0
        for _ in range(search_config.MAX_PROJECT_PAGES):
            payload = await self.client.get_project_page(start_at=start_at)
            page, is_last = ProjectTransformer.parse_project_page(payload)
            projects.extend(page)
            if is_last or not page:
                return projects
            start_at += len(page)

        self.logger.warning(
            f"Project listing truncated after {search_config.MAX_PROJECT_PAGES} pages",
            extra={"projects": len(projects)},
        )
        return projects

    async def list_projects_with_counts(self) -> list[tuple[Project, TaskCounts]]:
        """
        List projects with their status counts.

        The listing must succeed; a failed count for one project degrades to
        empty counts for that project only.
        """
        projects = await self.list_projects()
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def counts_for(project: Project) -> TaskCounts:
            async with semaphore:
                counts, _ = await self.get_tasks(project.key)
                return counts

        results = await asyncio.gather(*(counts_for(project) for project in projects), return_exceptions=True)

        combined = []
        for project, result in zip(projects, results, strict=True):
            outcome = FetchOutcome.from_result("tasks", result)
            combined.append((project, outcome.value_or(TaskCounts(), self.logger, {"project_key": project.key})))
        return combined

    # ------------------------------------------------------------------
    # Single-purpose views (errors propagate)
    # ------------------------------------------------------------------

    async def get_tasks(self, project_key: str) -> tuple[TaskCounts, list[Issue]]:
        key = JQLValidator.validate_project_key(project_key)
        issues = await self._search(SearchRequest(JQLQueryBuilder.project_filter(key), TASK_FIELDS, self.max_results))
        return TaskCounts.from_issues(issues), issues

    async def get_task_stats(self, project_key: str) -> ProjectTaskStats:
        counts, _ = await self.get_tasks(project_key)
        return compute_task_stats(counts)

    async def get_versions(self, project_key: str) -> list[Version]:
        """Versions with issueCounts computed from the project's issues."""
        key = JQLValidator.validate_project_key(project_key)
        request = SearchRequest(JQLQueryBuilder.project_filter(key), VERSION_COUNT_FIELDS, self.max_results)
        versions, issues = await asyncio.gather(self._fetch_versions(key), self._search(request))
        return compute_issue_counts(versions, issues)

    async def get_version_detail(self, project_key: str, version_id: str) -> tuple[Version, list[Issue]]:
        """
        One version and the issues fixed in it.

        The version's issueCounts are taken from the same issue search.

        Raises:
            ValidationError: If the project key or version id is malformed
            NotFoundError: If the version does not exist
        """
        key = JQLValidator.validate_project_key(project_key)
        safe_id = JQLValidator.validate_version_id(version_id)
        request = SearchRequest(JQLQueryBuilder.version_filter(key, safe_id), VERSION_ISSUE_FIELDS, self.max_results)

        raw_version, issues = await asyncio.gather(self.client.get_version(safe_id), self._search(request))
        version = VersionTransformer.parse_version(raw_version)
        return version.with_issue_counts(count_fixed_issues(issues)), issues

    async def get_users(self, project_key: str) -> list[User]:
        key = JQLValidator.validate_project_key(project_key)
        return await self._fetch_users(key)

    async def get_all_issues(self, project_key: str) -> list[Issue]:
        """Tasks, stories and epics of a project."""
        key = JQLValidator.validate_project_key(project_key)
        request = SearchRequest(JQLQueryBuilder.issue_types_filter(key), ALL_ISSUES_FIELDS, self.max_results)
        return await self._search(request)

    async def get_issue_detail(self, project_key: str, issue_key: str) -> IssueDetail:
        """
        Full issue view including parent, children and links.

        Epic children are only searched for epics; if that search fails the
        detail is returned with subtasks only.

        Raises:
            ValidationError: If the issue key contains whitespace or is malformed
            NotFoundError: If the issue does not exist
        """
        safe_issue_key = JQLValidator.validate_issue_key(issue_key)
        key = JQLValidator.validate_project_key(project_key)

        raw_issue = await self.client.get_issue(safe_issue_key)
        detail = IssueTransformer.parse_issue_detail(raw_issue)
        if not detail.is_epic:
            return detail

        request = SearchRequest(
            JQLQueryBuilder.epic_children_filter(key, safe_issue_key), EPIC_CHILD_FIELDS, self.max_results
        )
        try:
            payload = await self.client.search_issues(request)
            raw_children = payload.get("issues") if isinstance(payload, dict) else None
            return IssueTransformer.parse_issue_detail(raw_issue, epic_children=raw_children or [])
        except Exception as e:
            log_and_continue(self.logger, e, {"issue_key": safe_issue_key}, "Epic children fetch")
            return detail

    # ------------------------------------------------------------------
    # Sub-fetches: fetch then normalize
    # ------------------------------------------------------------------

    async def _search(self, request: SearchRequest) -> list[Issue]:
        return IssueTransformer.parse_search_response(await self.client.search_issues(request))

    async def _fetch_versions(self, project_key: str) -> list[Version]:
        return VersionTransformer.parse_versions(await self.client.get_project_versions(project_key))

    async def _fetch_users(self, project_key: str) -> list[User]:
        return ProjectTransformer.parse_users(await self.client.get_assignable_users(project_key))

    async def _fetch_project(self, project_key: str) -> Project:
        return ProjectTransformer.parse_project(await self.client.get_project(project_key))
