"""Kanban Process Workflow.

Durable counterpart of WorkflowRunner.execute_workflow: plans a registered
kanban workflow, then executes each step as its own activity, passing the run
context from one step to the next.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from activities.kanban import (
        KanbanActivities,
        ExecuteStepInput,
        PlanWorkflowInput,
    )


# Business errors and ERP not-found fail the run immediately; ERP transport errors retry
NON_RETRYABLE_ERRORS = [
    "ERPNotFoundError",
    "NotFoundError",
    "KanbanNotFound",
    "ContainerNotFound",
    "InventoryNotFound",
    "JobNotFound",
    "OrderNotFound",
    "WorkflowNotFound",
    "InsufficientInventory",
    "NoAvailableContainers",
    "InvalidRequest",
    "InvalidSplitRequest",
    "InvalidMergeRequest",
    "InvalidKanbanRequest",
    "MissingKanbanFields",
    "InvalidKanbanTransition",
    "WorkflowInactive",
    "UnknownOperation",
    "UnknownStepType",
    "UnknownMergeStrategy",
]

STEP_RETRY_POLICY = RetryPolicy(
    initial_interval=timedelta(seconds=1),
    backoff_coefficient=2.0,
    maximum_interval=timedelta(seconds=30),
    maximum_attempts=5,
    non_retryable_error_types=NON_RETRYABLE_ERRORS,
)

# Creating a kanban writes to the ERP and is not idempotent; a retry after a
# partial success would create a second kanban
CREATE_STEP_RETRY_POLICY = RetryPolicy(
    maximum_attempts=1,
    non_retryable_error_types=NON_RETRYABLE_ERRORS,
)


def retry_policy_for(step_type: str) -> RetryPolicy:
    if step_type == "create_kanban":
        return CREATE_STEP_RETRY_POLICY
    return STEP_RETRY_POLICY


@dataclass
class KanbanProcessInput:
    """Input for Kanban Process Workflow.

    Attributes:
        workflow_id: Registered kanban workflow to run
        parameters: Runtime parameters handed to every step
    """
    workflow_id: str
    parameters: Optional[Dict[str, Any]] = None


@workflow.defn
class KanbanProcessWorkflow:
    """Runs a kanban workflow definition, one activity per step."""

    def __init__(self) -> None:
        self._current_step: Optional[str] = None
        self._completed_steps: List[str] = []

    @workflow.run
    async def run(self, input: KanbanProcessInput) -> dict:
        """Execute the kanban workflow.

        Returns:
            dict with run id, executed step outcomes and created kanban ids
        """
        info = workflow.info()
        workflow.logger.info(f"Starting kanban workflow {input.workflow_id} (run {info.run_id})")

        plan = await workflow.execute_activity_method(
            KanbanActivities.plan_workflow,
            PlanWorkflowInput(workflow_id=input.workflow_id),
            start_to_close_timeout=timedelta(seconds=30),
            retry_policy=STEP_RETRY_POLICY,
        )

        context: Dict[str, Any] = {
            "workflow_id": input.workflow_id,
            "run_id": info.run_id,
            "kanban_ids": [],
            "job_id": None,
        }
        outcomes: List[Dict[str, Any]] = []

        for step_id, step_type in zip(plan.step_ids, plan.step_types):
            self._current_step = step_id
            workflow.logger.info(f"Executing step {step_id}")

            result = await workflow.execute_activity_method(
                KanbanActivities.execute_workflow_step,
                ExecuteStepInput(
                    workflow_id=input.workflow_id,
                    step_id=step_id,
                    parameters=input.parameters or {},
                    context=context,
                ),
                start_to_close_timeout=timedelta(seconds=60),
                retry_policy=retry_policy_for(step_type),
            )

            context = result.context
            outcomes.append(result.outcome)
            self._completed_steps.append(step_id)

        self._current_step = None
        workflow.logger.info(f"Kanban workflow {input.workflow_id} completed: {len(outcomes)} steps")

        return {
            "workflow_id": input.workflow_id,
            "run_id": info.run_id,
            "status": "COMPLETED",
            "executed_steps": outcomes,
            "created_kanban_ids": context["kanban_ids"],
        }

    @workflow.query
    def progress(self) -> dict:
        return {
            "current_step": self._current_step,
            "completed_steps": list(self._completed_steps),
        }
