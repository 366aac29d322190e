"""Workflow definitions module."""

from workflows.kanban_workflow import KanbanProcessWorkflow, KanbanProcessInput

__all__ = ["KanbanProcessWorkflow", "KanbanProcessInput"]
