"""Core data models - ERP-neutral canonical types.

This package contains the inventory, production, kanban and workflow models
used by the engine. They are intentionally independent of the PLEX wire format.
"""

from core.models.canonical import (
    # Base
    CanonicalBase,

    # Enums
    Location,
    ContainerStatus,
    MergeStrategy,
    JobStatus,
    OrderStatus,

    # Inventory
    Container,
    ContainerCreate,
    Inventory,
    InventoryPatch,

    # Production
    Job,
    JobCreate,
    JobPatch,
    WorkCenter,
    CustomerOrder,
)

from core.models.kanban import (
    Kanban,
    KanbanCreate,
    KanbanStatus,
    KanbanType,
    WithdrawalType,
    WITHDRAWAL_ROUTES,
)

from core.models.workflow import (
    StepType,
    StepParams,
    CreateKanbanParams,
    MoveInventoryAction,
    MoveInventoryParams,
    UpdateJobParams,
    NotifyTeamParams,
    CreateKanbanStep,
    MoveInventoryStep,
    UpdateJobStep,
    NotifyTeamStep,
    WorkflowStep,
    WorkflowDefinition,
)

__all__ = [
    # Base
    "CanonicalBase",

    # Enums
    "Location",
    "ContainerStatus",
    "MergeStrategy",
    "JobStatus",
    "OrderStatus",

    # Inventory
    "Container",
    "ContainerCreate",
    "Inventory",
    "InventoryPatch",

    # Production
    "Job",
    "JobCreate",
    "JobPatch",
    "WorkCenter",
    "CustomerOrder",

    # Kanban
    "Kanban",
    "KanbanCreate",
    "KanbanStatus",
    "KanbanType",
    "WithdrawalType",
    "WITHDRAWAL_ROUTES",

    # Workflow
    "StepType",
    "StepParams",
    "CreateKanbanParams",
    "MoveInventoryAction",
    "MoveInventoryParams",
    "UpdateJobParams",
    "NotifyTeamParams",
    "CreateKanbanStep",
    "MoveInventoryStep",
    "UpdateJobStep",
    "NotifyTeamStep",
    "WorkflowStep",
    "WorkflowDefinition",
]
