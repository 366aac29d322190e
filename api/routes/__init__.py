"""API Routes Package."""

from api.routes import health, kanbans, workflows, containers, jobs, metrics

__all__ = [
    "health",
    "kanbans",
    "workflows",
    "containers",
    "jobs",
    "metrics",
]
