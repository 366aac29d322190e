"""
Workflow Registry

Holds the named workflow definitions the runner can execute. Definitions are
immutable once registered; registering the same id again replaces it.

Raw dict definitions are validated into WorkflowDefinition. A step whose
``type`` is not one of the known step kinds is rejected with UnknownStepType
rather than a generic validation error.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from core.errors import InvalidRequest, UnknownStepType, WorkflowNotFound
from core.models import StepType, WorkflowDefinition
from core.observability.logging import get_logger

logger = get_logger(__name__)

_KNOWN_STEP_TYPES = {t.value for t in StepType}


def default_workflows() -> List[WorkflowDefinition]:
    """The workflows every system starts with."""
    return [
        WorkflowDefinition.model_validate({
            "id": "customer-order-fulfillment",
            "name": "Customer Order Fulfillment",
            "description": "Automated workflow for fulfilling customer orders",
            "isActive": True,
            "steps": [
                {
                    "id": "check-inventory",
                    "name": "Check Available Inventory",
                    "type": "move_inventory",
                    "parameters": {"action": "check_availability"},
                    "order": 1,
                },
                {
                    "id": "create-withdrawal",
                    "name": "Create Withdrawal Kanban",
                    "type": "create_kanban",
                    "parameters": {"type": "withdrawal", "withdrawalType": "end_to_tpa"},
                    "order": 2,
                },
                {
                    "id": "update-order",
                    "name": "Update Order Status",
                    "type": "update_job",
                    "parameters": {"status": "in_production"},
                    "order": 3,
                },
            ],
        }),
        WorkflowDefinition.model_validate({
            "id": "production-scheduling",
            "name": "Production Scheduling",
            "description": "Automated workflow for production scheduling",
            "isActive": True,
            "steps": [
                {
                    "id": "create-production-kanban",
                    "name": "Create Production Kanban",
                    "type": "create_kanban",
                    "parameters": {"type": "production"},
                    "order": 1,
                },
                {
                    "id": "assign-work-center",
                    "name": "Assign Work Center",
                    "type": "update_job",
                    "parameters": {"assignWorkCenter": True},
                    "order": 2,
                },
                {
                    "id": "notify-production",
                    "name": "Notify Production Team",
                    "type": "notify_team",
                    "parameters": {"team": "production", "message": "New production kanban created"},
                    "order": 3,
                },
            ],
        }),
    ]


def parse_workflow(data: Dict[str, Any]) -> WorkflowDefinition:
    """Validate a raw workflow definition."""
    for step in data.get("steps") or []:
        if isinstance(step, dict) and step.get("type") not in _KNOWN_STEP_TYPES:
            raise UnknownStepType(step.get("type"), step_id=step.get("id"))

    try:
        return WorkflowDefinition.model_validate(data)
    except ValidationError as e:
        raise InvalidRequest(
            f"Invalid workflow definition {data.get('id')}",
            workflow_id=data.get("id"),
            errors=[
                {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        ) from e


class WorkflowRegistry:
    """Workflow definitions by id, in registration order."""

    def __init__(self, workflows: Optional[Iterable[Union[WorkflowDefinition, Dict[str, Any]]]] = None):
        self._workflows: Dict[str, WorkflowDefinition] = {}
        for workflow in workflows if workflows is not None else default_workflows():
            self.register(workflow)

    def register(self, workflow: Union[WorkflowDefinition, Dict[str, Any]]) -> WorkflowDefinition:
        if not isinstance(workflow, WorkflowDefinition):
            workflow = parse_workflow(workflow)
        if workflow.id in self._workflows:
            logger.info(f"Replacing workflow {workflow.id}")
        self._workflows[workflow.id] = workflow
        return workflow

    def unregister(self, workflow_id: str) -> None:
        if self._workflows.pop(workflow_id, None) is None:
            raise WorkflowNotFound(workflow_id)

    def get(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        return self._workflows.get(workflow_id)

    def require(self, workflow_id: str) -> WorkflowDefinition:
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFound(workflow_id)
        return workflow

    def all(self) -> List[WorkflowDefinition]:
        return list(self._workflows.values())

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._workflows

    def __len__(self) -> int:
        return len(self._workflows)
