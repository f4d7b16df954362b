"""
REST API for Jira Pulse

Serves the dashboard's project, version and issue views over HTTP.
"""

from .app import create_app

__all__ = ["create_app"]
