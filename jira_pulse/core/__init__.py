"""
Core Infrastructure - Logging, Configuration, Fetch Metrics

This package provides centralized infrastructure utilities that should be used
throughout the service instead of direct library calls.

Usage:
    from jira_pulse.core import get_config, get_logger

    logger = get_logger(__name__)
    jira_config = get_config().get_jira_config()
"""

from ..secure_config import ConfigurationError, JiraConfig, SecureConfig, ServiceConfig, get_config
from ..security import JQLValidator, ValidationError
from .fetch_metrics import FetchMetricsTracker
from .logging_config import get_logger, log_with_context, setup_logging

__all__ = [
    # Configuration
    "get_config",
    "ConfigurationError",
    "SecureConfig",
    "JiraConfig",
    "ServiceConfig",
    # Logging
    "get_logger",
    "setup_logging",
    "log_with_context",
    # Metrics
    "FetchMetricsTracker",
    # Validation
    "JQLValidator",
    "ValidationError",
]
