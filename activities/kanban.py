"""Kanban activities for the durable workflow path.

Temporal activities that wrap the in-process kanban engine and workflow
runner. Activities are methods on KanbanActivities so the worker can hand
them the KanbanSystem it built at startup.

Business errors (KanbanError subclasses) are raised unchanged; the workflow's
retry policy lists their type names as non-retryable. ERP transport errors
are retried.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from temporalio import activity

from core.errors import WorkflowInactive
from core.observability.logging import with_correlation
from kanban_engine import KanbanSystem, RunContext


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class CreateKanbanInput:
    """Input for create_kanban activity.

    Attributes:
        kanban: Kanban fields, camelCase or snake_case keys
    """
    kanban: Dict[str, Any]


@dataclass
class CompleteKanbanInput:
    kanban_id: str


@dataclass
class KanbanActivityOutput:
    """Kanban state after an activity.

    Attributes:
        kanban_id: Kanban id
        status: pending, active, completed or cancelled
        container_ids: Containers moved by a withdrawal
        job_id: Job attached to a production kanban
    """
    kanban_id: str
    status: str
    container_ids: List[str] = field(default_factory=list)
    job_id: Optional[str] = None


@dataclass
class PlanWorkflowInput:
    workflow_id: str


@dataclass
class PlanWorkflowOutput:
    """Step ids of a workflow in execution order, with each step's type."""
    workflow_id: str
    step_ids: List[str]
    step_types: List[str] = field(default_factory=list)


@dataclass
class ExecuteStepInput:
    """Input for execute_workflow_step activity.

    Attributes:
        workflow_id: Registered workflow id
        step_id: Step to execute
        parameters: Runtime parameters for the whole run
        context: Serialized RunContext from the previous step
    """
    workflow_id: str
    step_id: str
    parameters: Dict[str, Any]
    context: Dict[str, Any]


@dataclass
class ExecuteStepOutput:
    """Step outcome plus the context to hand to the next step."""
    outcome: Dict[str, Any]
    context: Dict[str, Any]


# =============================================================================
# Activities
# =============================================================================

class KanbanActivities:
    """Activities bound to one KanbanSystem.

    Usage:
        activities = KanbanActivities(system)
        Worker(client, task_queue=..., workflows=[...], activities=activities.all())
    """

    def __init__(self, system: KanbanSystem):
        self.system = system

    def all(self) -> List[Callable]:
        return [
            self.create_kanban,
            self.complete_kanban,
            self.plan_workflow,
            self.execute_workflow_step,
        ]

    @activity.defn(name="create_kanban")
    async def create_kanban(self, input: CreateKanbanInput) -> KanbanActivityOutput:
        """Create a kanban and run its processor."""
        activity.logger.info(f"Creating kanban for part {input.kanban.get('partNumber') or input.kanban.get('part_number')}")

        with with_correlation(activity_name="create_kanban"):
            kanban = await self.system.engine.create_kanban(input.kanban)

        activity.logger.info(f"Kanban {kanban.id} created ({kanban.status.value})")
        return KanbanActivityOutput(
            kanban_id=kanban.id,
            status=kanban.status.value,
            container_ids=list(kanban.container_ids),
            job_id=kanban.job_id,
        )

    @activity.defn(name="complete_kanban")
    async def complete_kanban(self, input: CompleteKanbanInput) -> KanbanActivityOutput:
        with with_correlation(activity_name="complete_kanban", kanban_id=input.kanban_id):
            kanban = await self.system.engine.complete_kanban(input.kanban_id)

        activity.logger.info(f"Kanban {kanban.id} completed")
        return KanbanActivityOutput(
            kanban_id=kanban.id,
            status=kanban.status.value,
            container_ids=list(kanban.container_ids),
            job_id=kanban.job_id,
        )

    @activity.defn(name="plan_workflow")
    async def plan_workflow(self, input: PlanWorkflowInput) -> PlanWorkflowOutput:
        """Resolve a workflow to its ordered step ids."""
        workflow_def = self.system.registry.require(input.workflow_id)
        if not workflow_def.is_active:
            raise WorkflowInactive(input.workflow_id)

        steps = workflow_def.ordered_steps()
        step_ids = [step.id for step in steps]
        activity.logger.info(f"Workflow {input.workflow_id} planned: {step_ids}")
        return PlanWorkflowOutput(
            workflow_id=input.workflow_id,
            step_ids=step_ids,
            step_types=[step.type for step in steps],
        )

    @activity.defn(name="execute_workflow_step")
    async def execute_workflow_step(self, input: ExecuteStepInput) -> ExecuteStepOutput:
        """Execute one step and return the updated run context."""
        context = RunContext.from_dict(input.context)

        with with_correlation(
            activity_name="execute_workflow_step",
            workflow_id=input.workflow_id,
            workflow_run_id=context.run_id,
        ):
            outcome = await self.system.runner.execute_step_by_id(
                input.workflow_id,
                input.step_id,
                input.parameters,
                context,
            )

        activity.logger.info(f"Step {input.step_id} of {input.workflow_id} done")
        return ExecuteStepOutput(outcome=outcome.to_dict(), context=context.to_dict())
