"""
Data Collectors - Fetch and normalize data from Jira Cloud

This package contains:
    - jira_rest_client: Jira REST API v3 client (Basic auth, retrying HTTP)
    - jql_queries: JQL filter builders and bounded search requests
    - jira_transformers: Raw JSON -> domain model parsers
    - project_aggregator: Per-project fan-out and merge
    - dashboard_assembler: All-project dashboard orchestration

Collectors are created per request and never cache between requests.
"""

__all__ = []
