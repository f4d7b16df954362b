"""
Dashboard Assembler

Runs ProjectAggregator for every project with bounded concurrency, then
resolves each project's latest version and health.

Failure isolation:
    - a degraded sub-fetch only degrades that project's record
    - an aggregation that raises (e.g., malformed key) becomes an error entry
      for that project; the other projects are unaffected

Entries come back in the order of the requested keys.
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence

from jira_pulse.collectors.project_aggregator import ProjectAggregator
from jira_pulse.core import get_logger
from jira_pulse.domain.constants import HEALTH_STATUSES
from jira_pulse.domain.dashboard import DashboardEntry, DashboardSummary
from jira_pulse.domain.project import Project
from jira_pulse.scoring import compute_health, compute_issue_counts, resolve_latest, summarize
from jira_pulse.security import ValidationError


def normalize_status_filter(status_filter: str | None) -> str | None:
    """
    Match a health status filter case-insensitively.

    Raises:
        ValidationError: If the value is not a known health status
    """
    if status_filter is None or not status_filter.strip():
        return None
    wanted = status_filter.strip().casefold()
    for status in HEALTH_STATUSES:
        if status.casefold() == wanted:
            return status
    raise ValidationError(f"Invalid status filter: '{status_filter}'. Must be one of: {', '.join(HEALTH_STATUSES)}")


class DashboardAssembler:
    """Builds dashboard entries for many projects concurrently."""

    def __init__(
        self,
        aggregator: ProjectAggregator,
        max_concurrency: int = 5,
        logger: logging.Logger | None = None,
    ):
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.aggregator = aggregator
        self.max_concurrency = max_concurrency
        self.logger = logger or get_logger(__name__)

    async def assemble_entry(self, project_key: str, project: Project | None = None) -> DashboardEntry:
        """Aggregate one project and derive its latest version and health."""
        record = await self.aggregator.aggregate(project_key, project=project)
        record.versions = compute_issue_counts(record.versions, record.issues)
        latest = resolve_latest(record.versions)
        health = compute_health(record.task_counts, latest)
        return DashboardEntry(project_key=record.key, record=record, latest_version=latest, health=health)

    async def assemble_all(
        self, project_keys: Sequence[str], projects: Mapping[str, Project] | None = None
    ) -> list[DashboardEntry]:
        """
        Assemble entries for all keys, at most ``max_concurrency`` at a time.

        Args:
            project_keys: Keys to aggregate
            projects: Already-known project metadata by key (skips the metadata fetch)

        Returns:
            One entry per key, in input order
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)
        known = projects or {}

        async def bounded(key: str) -> DashboardEntry:
            async with semaphore:
                return await self.assemble_entry(key, project=known.get(key))

        results = await asyncio.gather(*(bounded(key) for key in project_keys), return_exceptions=True)

        entries: list[DashboardEntry] = []
        for key, result in zip(project_keys, results, strict=True):
            if isinstance(result, Exception):
                self.logger.warning(
                    f"Dashboard entry failed for {key}: {result}",
                    extra={"project_key": key, "exception_class": result.__class__.__name__},
                )
                entries.append(DashboardEntry.failed(str(key), str(result)))
            elif isinstance(result, BaseException):
                raise result
            else:
                entries.append(result)
        return entries

    async def assemble_dashboard(self, status_filter: str | None = None) -> tuple[list[DashboardEntry], DashboardSummary]:
        """
        List all projects, then assemble and summarize their entries.

        The summary always covers every project; the filter only narrows
        the returned entries.

        Raises:
            ValidationError: If ``status_filter`` is not a health status
            UpstreamError: If the project listing itself fails
        """
        wanted = normalize_status_filter(status_filter)

        projects = await self.aggregator.list_projects()
        entries = await self.assemble_all([p.key for p in projects], {p.key: p for p in projects})
        summary = summarize(entries)

        self.logger.info(
            "Dashboard assembled",
            extra={
                "projects": summary.total,
                "healthy": summary.healthy,
                "at_risk": summary.at_risk,
                "critical": summary.critical,
                "failed": summary.failed,
            },
        )

        if wanted is not None:
            entries = [entry for entry in entries if entry.health is not None and entry.health.status == wanted]
        return entries, summary
