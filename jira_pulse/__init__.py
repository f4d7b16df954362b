"""
Jira Pulse - Issue Tracker Aggregation Layer

Turns the Jira Cloud REST API into a small set of stable, derived views
(project health, release progress, issue roll-ups) for a dashboard UI.

Package Structure:
    - core: Infrastructure (logging, fetch metrics)
    - domain: Domain models (Project, Issue, Version, ProjectHealth)
    - collectors: Upstream REST client, query building, aggregation
    - scoring: Latest-version resolution and health derivation
    - api: FastAPI application exposing the dashboard endpoints
"""

__version__ = "1.0.0"
