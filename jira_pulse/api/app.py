"""
FastAPI Application - Jira Pulse REST API

Read-through views over Jira Cloud for the project dashboard: project
lists with status counts, release progress, issue roll-ups and health.
Every request is a fresh snapshot; nothing is cached between requests.

Usage:
    # Development
    uvicorn jira_pulse.api.app:app --reload --port 8000

    # Production
    uvicorn jira_pulse.api.app:app --host 0.0.0.0 --port 8000 --workers 4

API Documentation:
    http://localhost:8000/docs (Swagger UI)
    http://localhost:8000/redoc (ReDoc)
"""

from collections.abc import AsyncIterator
from datetime import datetime
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from jira_pulse import __version__
from jira_pulse.api.middleware import CacheControlMiddleware, RequestIDMiddleware
from jira_pulse.async_http_client import AsyncRetryingHTTPClient, NotFoundError, UpstreamError
from jira_pulse.collectors.dashboard_assembler import DashboardAssembler
from jira_pulse.collectors.jira_rest_client import JiraRESTClient, get_jira_rest_client
from jira_pulse.collectors.project_aggregator import ProjectAggregator
from jira_pulse.core import (
    ConfigurationError,
    FetchMetricsTracker,
    ValidationError,
    get_config,
    get_logger,
    log_with_context,
    setup_logging,
)
from jira_pulse.domain.issue import Issue
from jira_pulse.security import JQLValidator

logger = get_logger(__name__)

TASK_ROW_FIELDS = ("key", "summary", "status")
VERSION_ISSUE_ROW_FIELDS = ("key", "summary", "status", "priority", "assignee")


def _issue_row(issue: Issue, fields: tuple[str, ...]) -> dict[str, Any]:
    data = issue.to_dict()
    return {name: data[name] for name in fields}


def _error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# ============================================================
# Dependencies (one HTTP client and metrics tracker per request)
# ============================================================


async def get_jira_client(request: Request) -> AsyncIterator[JiraRESTClient]:
    """
    Yield a Jira client bound to a fresh retrying HTTP client.

    Raises:
        ConfigurationError: If Jira credentials are missing or invalid (before any request)
    """
    metrics = FetchMetricsTracker(name=request.url.path)
    try:
        async with AsyncRetryingHTTPClient(metrics=metrics) as http_client:
            yield get_jira_rest_client(http_client)
    finally:
        log_with_context(logger, "debug", "Upstream fetch metrics", **metrics.to_dict())


def get_aggregator(client: Annotated[JiraRESTClient, Depends(get_jira_client)]) -> ProjectAggregator:
    service_config = get_config().get_service_config()
    return ProjectAggregator(
        client,
        max_results=service_config.max_results,
        max_concurrency=service_config.max_concurrency,
    )


def get_assembler(aggregator: Annotated[ProjectAggregator, Depends(get_aggregator)]) -> DashboardAssembler:
    return DashboardAssembler(aggregator, max_concurrency=get_config().get_service_config().max_concurrency)


Aggregator = Annotated[ProjectAggregator, Depends(get_aggregator)]


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""

    service_config = get_config().get_service_config()
    setup_logging(level=service_config.log_level, json_output=service_config.json_logs)

    app = FastAPI(
        title="Jira Pulse API",
        description="Project health, release progress and issue roll-ups aggregated from Jira Cloud",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - last added is executed first)
    app.add_middleware(CacheControlMiddleware)  # Cache headers (innermost)
    app.add_middleware(RequestIDMiddleware)  # Request tracking (outermost)

    # ============================================================
    # Error Handling
    # ============================================================

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        logger.warning("Rejected invalid input", extra={"path": request.url.path, "error": str(exc)})
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", str(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(str(error.get("msg", "")) for error in exc.errors())
        return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid request", details)

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        if isinstance(exc, NotFoundError) or exc.is_not_found:
            return _error_response(status.HTTP_404_NOT_FOUND, "Not found", exc.message)
        logger.error(
            "Upstream request failed",
            extra={"path": request.url.path, "status_code": exc.status_code, "error": exc.message},
        )
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch data from Jira", exc.message)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("Service is not configured", extra={"error": str(exc)})
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Service is not configured", str(exc))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error", exc_info=exc, extra={"path": request.url.path})
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc))

    # ============================================================
    # Health Check
    # ============================================================

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Liveness check. Does not call Jira."""
        return {"status": "healthy", "timestamp": datetime.now().isoformat(), "version": __version__}

    # ============================================================
    # Dashboard
    # ============================================================

    @app.get("/dashboard", tags=["Dashboard"])
    async def get_dashboard(
        assembler: Annotated[DashboardAssembler, Depends(get_assembler)],
        status_filter: Annotated[str | None, Query(alias="status")] = None,
    ):
        """
        All projects with latest version and health.

        Args:
            status_filter: Optional health status ("Healthy", "At Risk", "Critical")

        Returns:
            {"projects": [...], "summary": {...}}
        """
        entries, summary = await assembler.assemble_dashboard(status_filter)
        return {"projects": [entry.to_dict() for entry in entries], "summary": summary.to_dict()}

    # ============================================================
    # Project Endpoints
    # ============================================================

    @app.get("/projects", tags=["Projects"])
    async def list_projects(aggregator: Aggregator):
        """All projects with their status counts."""
        projects = await aggregator.list_projects_with_counts()
        logger.info("Projects listed", extra={"projects": len(projects)})
        return [{**project.to_dict(), "taskCounts": counts.to_dict()} for project, counts in projects]

    @app.get("/projects/{project_key}/tasks", tags=["Projects"])
    async def get_project_tasks(project_key: str, aggregator: Aggregator):
        counts, issues = await aggregator.get_tasks(project_key)
        return {**counts.to_dict(), "issues": [_issue_row(issue, TASK_ROW_FIELDS) for issue in issues]}

    @app.get("/projects/{project_key}/stats", tags=["Projects"])
    async def get_project_stats(project_key: str, aggregator: Aggregator):
        """Done / in progress / blocked / to do breakdown with completion percentage."""
        stats = await aggregator.get_task_stats(project_key)
        return stats.to_dict()

    @app.get("/projects/{project_key}/users", tags=["Projects"])
    async def get_project_users(project_key: str, aggregator: Aggregator):
        users = await aggregator.get_users(project_key)
        return [user.to_dict() for user in users]

    # ============================================================
    # Version Endpoints
    # ============================================================

    @app.get("/projects/{project_key}/versions", tags=["Versions"])
    async def get_project_versions(project_key: str, aggregator: Aggregator):
        """Versions with issue counts computed from the project's issues."""
        versions = await aggregator.get_versions(project_key)
        return [version.to_dict() for version in versions]

    @app.get("/projects/{project_key}/versions/{version_id}", tags=["Versions"])
    async def get_version_detail(project_key: str, version_id: str, aggregator: Aggregator):
        version, issues = await aggregator.get_version_detail(project_key, version_id)
        return {
            "version": version.to_dict(),
            "issues": [_issue_row(issue, VERSION_ISSUE_ROW_FIELDS) for issue in issues],
        }

    # ============================================================
    # Issue Endpoints
    # ============================================================

    @app.get("/projects/{project_key}/all-issues", tags=["Issues"])
    async def get_all_issues(project_key: str, aggregator: Aggregator):
        """Tasks, stories and epics of a project."""
        issues = await aggregator.get_all_issues(project_key)
        return [issue.to_dict() for issue in issues]

    @app.get("/projects/{project_key}/issues/{issue_key}", tags=["Issues"])
    async def get_issue_detail(project_key: str, issue_key: str, aggregator: Aggregator):
        """
        Full issue detail including parent, children and links.

        Returns 400 for malformed keys and 404 when Jira has no such issue.
        """
        # A bad project key is reported by the generic validation handler
        JQLValidator.validate_project_key(project_key)
        try:
            detail = await aggregator.get_issue_detail(project_key, issue_key)
        except ValidationError as e:
            return _error_response(status.HTTP_400_BAD_REQUEST, "Invalid issue key", str(e))
        except UpstreamError as e:
            if not e.is_not_found:
                raise
            return _error_response(status.HTTP_404_NOT_FOUND, "Issue not found", f'Issue "{issue_key}" does not exist.')
        return detail.to_dict()

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("=" * 60)
    logger.info("Jira Pulse API")
    logger.info("=" * 60)
    logger.info("Starting server...")
    logger.info("API Docs: http://localhost:8000/docs")
    logger.info("Health Check: http://localhost:8000/health")
    logger.info("=" * 60)

    uvicorn.run("jira_pulse.api.app:app", host="127.0.0.1", port=8000, reload=True, log_level="info")
