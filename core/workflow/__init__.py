"""Core workflow module - kanban workflow run results.

Workflow definitions live in core.models.workflow; the in-process interpreter
is kanban_engine.runner and the durable version is in the main workflows/
folder. Both report runs with these types.
"""

from core.workflow.base import (
    StepOutcome,
    WorkflowRunStatus,
    WorkflowRunResult,
)

__all__ = [
    "StepOutcome",
    "WorkflowRunStatus",
    "WorkflowRunResult",
]
