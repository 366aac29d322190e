"""Activity definitions module."""

from activities.kanban import (
    KanbanActivities,
    CreateKanbanInput,
    CompleteKanbanInput,
    KanbanActivityOutput,
    PlanWorkflowInput,
    PlanWorkflowOutput,
    ExecuteStepInput,
    ExecuteStepOutput,
)

__all__ = [
    "KanbanActivities",
    "CreateKanbanInput",
    "CompleteKanbanInput",
    "KanbanActivityOutput",
    "PlanWorkflowInput",
    "PlanWorkflowOutput",
    "ExecuteStepInput",
    "ExecuteStepOutput",
]
