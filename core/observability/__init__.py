"""
Observability Module for the Kanban Engine

Provides:
- Structured logging with correlation IDs (kanban, part, workflow, step)
- Metrics collection (kanban lifecycle, workflow runs, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_kanban_created,
    record_kanban_completed,
    record_workflow_started,
    record_workflow_completed,
    record_workflow_failed,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_kanban_created",
    "record_kanban_completed",
    "record_workflow_started",
    "record_workflow_completed",
    "record_workflow_failed",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
