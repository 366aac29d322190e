"""Declarative kanban workflow definitions.

A workflow is an ordered list of steps. Each step is one variant of a tagged
union keyed on ``type``, and carries its own typed parameter model. Runtime
parameters are overlaid on the declared ones when the step executes.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import ConfigDict, Field
from typing_extensions import Annotated

from core.models.canonical import CanonicalBase, Location
from core.models.kanban import KanbanType, WithdrawalType


class StepType(str, Enum):
    CREATE_KANBAN = "create_kanban"
    MOVE_INVENTORY = "move_inventory"
    UPDATE_JOB = "update_job"
    NOTIFY_TEAM = "notify_team"


# =============================================================================
# Step parameters
# =============================================================================

class StepParams(CanonicalBase):
    """Base for step parameter models. Unknown keys are dropped."""
    model_config = ConfigDict(frozen=True, extra="ignore")


class CreateKanbanParams(StepParams):
    type: Optional[KanbanType] = None
    part_number: Optional[str] = None
    part_description: Optional[str] = None
    quantity: Optional[int] = None
    withdrawal_type: Optional[WithdrawalType] = None
    work_center: Optional[str] = None
    priority: Optional[int] = None
    job_id: Optional[str] = None
    customer_id: Optional[str] = None
    route: Optional[str] = None


class MoveInventoryAction(str, Enum):
    CHECK_AVAILABILITY = "check_availability"
    MOVE = "move"


class MoveInventoryParams(StepParams):
    action: MoveInventoryAction = MoveInventoryAction.CHECK_AVAILABILITY
    part_number: Optional[str] = None
    quantity: Optional[int] = None
    withdrawal_type: Optional[WithdrawalType] = None
    location: Optional[Location] = None
    to_location: Optional[Location] = None
    container_ids: Optional[List[str]] = None


class UpdateJobParams(StepParams):
    job_id: Optional[str] = None
    order_id: Optional[str] = None
    # Job status, or order status when order_id is given
    status: Optional[str] = None
    priority: Optional[int] = None
    work_center: Optional[str] = None
    assign_work_center: bool = False


class NotifyTeamParams(StepParams):
    team: str = "production"
    message: str = ""


# =============================================================================
# Steps (tagged union)
# =============================================================================

class _StepBase(CanonicalBase):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    order: int


class CreateKanbanStep(_StepBase):
    type: Literal["create_kanban"] = "create_kanban"
    parameters: CreateKanbanParams = Field(default_factory=CreateKanbanParams)


class MoveInventoryStep(_StepBase):
    type: Literal["move_inventory"] = "move_inventory"
    parameters: MoveInventoryParams = Field(default_factory=MoveInventoryParams)


class UpdateJobStep(_StepBase):
    type: Literal["update_job"] = "update_job"
    parameters: UpdateJobParams = Field(default_factory=UpdateJobParams)


class NotifyTeamStep(_StepBase):
    type: Literal["notify_team"] = "notify_team"
    parameters: NotifyTeamParams = Field(default_factory=NotifyTeamParams)


WorkflowStep = Annotated[
    Union[CreateKanbanStep, MoveInventoryStep, UpdateJobStep, NotifyTeamStep],
    Field(discriminator="type"),
]


class WorkflowDefinition(CanonicalBase):
    """An immutable, named sequence of steps."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    is_active: bool = True
    steps: Tuple[WorkflowStep, ...] = ()

    def ordered_steps(self) -> List[WorkflowStep]:
        """Steps by ascending ``order``; ties keep declaration order."""
        return sorted(self.steps, key=lambda step: step.order)

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None
