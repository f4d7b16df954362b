"""
Scoring - Pure derivations over aggregated project data

    - version_resolver: per-version issue counts and latest version selection
    - health_calculator: health classification, task stats, dashboard summary
"""

from .health_calculator import compute_health, compute_task_stats, summarize
from .version_resolver import compute_issue_counts, resolve_latest

__all__ = [
    "compute_health",
    "compute_task_stats",
    "summarize",
    "compute_issue_counts",
    "resolve_latest",
]
