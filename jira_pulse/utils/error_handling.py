"""
Error Handling Utility Module

Reusable error handling patterns with structured logging:
1. log_and_continue() - Log error and continue execution (for expected failures)
2. log_and_return_default() - Log error and return a default value

The aggregation pipeline uses log_and_return_default() to substitute typed
empty values for sub-fetches that failed upstream.
"""

import logging
from typing import Any


def log_and_continue(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with structured context and continue execution gracefully.

    Use this when encountering expected errors that should not halt execution
    (e.g., the epic children search behind an issue detail, which can be
    dropped without failing the detail itself).

    Args:
        logger: Logger instance from logging.getLogger(__name__)
        error: The caught exception
        context: Structured data about what failed (issue key, field, etc.)
        error_type: Human-readable description of the operation

    Example:
        try:
            payload = await client.search_issues(request)
            return IssueTransformer.parse_issue_detail(raw_issue, epic_children=payload.get("issues"))
        except Exception as e:
            log_and_continue(logger, e, {"issue_key": issue_key}, "Epic children fetch")
            return detail
    """
    logger.warning(
        f"{error_type} failed: {error}",
        extra={
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
        },
    )


def log_and_return_default(
    logger: logging.Logger,
    error: Exception,
    context: dict[str, Any],
    default_value: Any = None,
    error_type: str = "Operation",
) -> Any:
    """
    Log an error and return a default value.

    Args:
        logger: Logger instance
        error: The caught exception
        context: Structured data about what failed
        default_value: Value to return on error (None, [], {}, etc.)
        error_type: Human-readable description

    Returns:
        default_value

    Example:
        versions = log_and_return_default(
            logger, error,
            context={"project_key": "CB"},
            default_value=[],
            error_type="Version list fetch"
        )
    """
    logger.warning(
        f"{error_type} failed, returning default value: {error}",
        extra={
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
            "default_value": str(default_value),
        },
    )
    return default_value

