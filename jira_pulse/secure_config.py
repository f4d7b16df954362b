"""
Secure Configuration Management

Provides centralized, validated configuration for the service.
Replaces weak os.getenv() calls with strict validation and fail-fast behavior.

Usage:
    from jira_pulse.secure_config import get_config

    config = get_config()
    jira_config = config.get_jira_config()
    print(jira_config.base_url)

Security Features:
    - Strict validation of all configuration values
    - Fail-fast on missing/invalid configuration
    - No default credentials that could mask misconfigurations
    - Placeholder detection (e.g., "your_token_here")
    - HTTPS enforcement for the Jira base URL

Raises:
    ConfigurationError: If configuration is missing or invalid
"""

import os
import re
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class JiraConfig:
    """
    Validated Jira Cloud configuration.
    """

    base_url: str
    api_user: str
    api_token: str

    def __post_init__(self):
        """Normalize and validate configuration after initialization."""
        if self.base_url and "://" not in self.base_url:
            # Site names are often configured without a scheme
            self.base_url = f"https://{self.base_url}"
        self.base_url = self.base_url.rstrip("/")
        self._validate()

    def _validate(self):
        """
        Validate Jira configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.base_url:
            raise ConfigurationError("JIRA_BASE_URL is required")

        if not self.base_url.startswith("https://"):
            raise ConfigurationError(f"JIRA_BASE_URL must use HTTPS: {self.base_url}")

        if not self.api_user:
            raise ConfigurationError("JIRA_API_USER is required")

        if not self.api_token:
            raise ConfigurationError("JIRA_API_TOKEN is required")

        placeholders = ["your_token", "your_api_token", "example", "placeholder", "xxx", "replace_me"]
        if any(placeholder in self.api_token.lower() for placeholder in placeholders):
            raise ConfigurationError("JIRA_API_TOKEN contains a placeholder value - please set a real API token")


@dataclass
class ServiceConfig:
    """
    Tuning knobs for the aggregation service.

    Attributes:
        max_results: Issue search result cap per request (1-1000)
        max_concurrency: Projects aggregated concurrently by the dashboard
        log_level: Root log level
        json_logs: Emit JSON log lines instead of console format
    """

    max_results: int = 1000
    max_concurrency: int = 5
    log_level: str = "INFO"
    json_logs: bool = False

    def __post_init__(self):
        self._validate()

    def _validate(self):
        if not 1 <= self.max_results <= 1000:
            raise ConfigurationError(f"JIRA_MAX_RESULTS must be between 1 and 1000, got {self.max_results}")

        if self.max_concurrency < 1:
            raise ConfigurationError(f"DASHBOARD_MAX_CONCURRENCY must be at least 1, got {self.max_concurrency}")

        if not re.match(r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", self.log_level.upper()):
            raise ConfigurationError(f"LOG_LEVEL is not a valid level: {self.log_level}")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


class SecureConfig:
    """
    Centralized secure configuration manager.

    Loads and validates all service configuration from environment variables.
    Provides fail-fast behavior to catch configuration issues early.
    """

    def __init__(self):
        """Initialize configuration (loads .env file)."""
        load_dotenv()

    def get_jira_config(self) -> JiraConfig:
        """
        Get validated Jira configuration.

        Returns:
            JiraConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        return JiraConfig(
            base_url=os.getenv("JIRA_BASE_URL") or "",
            api_user=os.getenv("JIRA_API_USER") or "",
            api_token=os.getenv("JIRA_API_TOKEN") or "",
        )

    def get_service_config(self) -> ServiceConfig:
        """
        Get validated service tuning configuration.

        Raises:
            ConfigurationError: If a value is malformed
        """
        return ServiceConfig(
            max_results=_int_env("JIRA_MAX_RESULTS", 1000),
            max_concurrency=_int_env("DASHBOARD_MAX_CONCURRENCY", 5),
            log_level=os.getenv("LOG_LEVEL") or "INFO",
            json_logs=(os.getenv("LOG_JSON") or "").strip().lower() in {"1", "true", "yes"},
        )


_config_instance = None


def get_config() -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig()
    return _config_instance
