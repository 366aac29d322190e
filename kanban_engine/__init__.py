"""
Kanban Engine Package

Digital kanban lifecycle and the workflow interpreter that drives it.

Usage:
    from kanban_engine import build_kanban_system

    system = build_kanban_system()
    await system.start()
    kanban = await system.engine.create_kanban({...})
    run = await system.runner.execute_workflow("production-scheduling", {...})
"""

from .engine import (
    KanbanEngine,
    generate_kanban_id,
)

from .notifier import (
    LoggingNotifier,
    Notification,
    Notifier,
)

from .runner import (
    RunContext,
    WorkflowRunner,
    effective_parameters,
)

from .store import KanbanStore

from .system import (
    KanbanSystem,
    build_kanban_system,
)

from .workflows import (
    WorkflowRegistry,
    default_workflows,
)

__all__ = [
    "KanbanEngine",
    "generate_kanban_id",
    "LoggingNotifier",
    "Notification",
    "Notifier",
    "RunContext",
    "WorkflowRunner",
    "effective_parameters",
    "KanbanStore",
    "KanbanSystem",
    "build_kanban_system",
    "WorkflowRegistry",
    "default_workflows",
]
