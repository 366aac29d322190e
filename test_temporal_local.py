"""Test kanban activities without a Temporal server.

Activities run inside temporalio's ActivityEnvironment, which provides the
activity context (logger, info) without a worker. The workflow itself only
sequences activities, so its retry policy and input types are checked
statically.
"""

import asyncio

import pytest
from temporalio.testing import ActivityEnvironment

from activities.kanban import (
    CompleteKanbanInput,
    CreateKanbanInput,
    ExecuteStepInput,
    KanbanActivities,
    PlanWorkflowInput,
)
from connectors.mock import MockPlexConnector
from core import errors
from core.errors import InsufficientInventory, KanbanError, WorkflowInactive
from core.observability.metrics import MetricsCollector
from kanban_engine import LoggingNotifier, build_kanban_system
from workflows.kanban_workflow import (
    NON_RETRYABLE_ERRORS,
    CREATE_STEP_RETRY_POLICY,
    STEP_RETRY_POLICY,
    KanbanProcessInput,
    KanbanProcessWorkflow,
    retry_policy_for,
)


def _activities(workflows=None):
    system = build_kanban_system(
        connector=MockPlexConnector(),
        workflows=workflows,
        notifier=LoggingNotifier(),
        metrics=MetricsCollector(),
    )
    return system, KanbanActivities(system)


def _run(fn, *args):
    async def run():
        return await ActivityEnvironment().run(fn, *args)
    return asyncio.run(run())


def _kanban_error_types():
    found = set()
    pending = [KanbanError]
    while pending:
        cls = pending.pop()
        for sub in cls.__subclasses__():
            if sub.__module__ == errors.__name__:
                found.add(sub.__name__)
                pending.append(sub)
    return found


class TestKanbanActivities:

    def test_create_and_complete_kanban(self):
        system, activities = _activities()

        created = _run(activities.create_kanban, CreateKanbanInput(kanban={
            "type": "withdrawal",
            "partNumber": "PART-001",
            "partDescription": "Steel Bracket Assembly",
            "quantity": 120,
            "withdrawalType": "end_to_tpa",
        }))

        assert created.status == "active"
        assert created.container_ids == ["CONT-002"]

        completed = _run(activities.complete_kanban, CompleteKanbanInput(kanban_id=created.kanban_id))
        assert completed.status == "completed"
        assert system.engine.get_kanban(created.kanban_id).completed_at is not None

    def test_business_error_raised_unchanged(self):
        _, activities = _activities()

        with pytest.raises(InsufficientInventory):
            _run(activities.create_kanban, CreateKanbanInput(kanban={
                "type": "withdrawal",
                "part_number": "PART-002",
                "part_description": "Aluminum Housing",
                "quantity": 999,
                "withdrawal_type": "end_to_tpa",
            }))

    def test_plan_workflow_orders_steps(self):
        _, activities = _activities()

        plan = _run(activities.plan_workflow, PlanWorkflowInput(workflow_id="customer-order-fulfillment"))

        assert plan.step_ids == ["check-inventory", "create-withdrawal", "update-order"]
        assert plan.step_types == ["move_inventory", "create_kanban", "update_job"]

    def test_plan_inactive_workflow(self):
        _, activities = _activities([{
            "id": "paused",
            "name": "Paused",
            "isActive": False,
            "steps": [{"id": "n", "name": "Notify", "type": "notify_team", "order": 1}],
        }])

        with pytest.raises(WorkflowInactive):
            _run(activities.plan_workflow, PlanWorkflowInput(workflow_id="paused"))

    def test_steps_carry_context(self):
        """Running every planned step one activity at a time matches an in-process run."""
        system, activities = _activities()
        parameters = {"partNumber": "PART-003", "partDescription": "Plastic Cover", "quantity": 200}

        plan = _run(activities.plan_workflow, PlanWorkflowInput(workflow_id="production-scheduling"))
        context = {"workflow_id": "production-scheduling", "run_id": "run_local", "kanban_ids": [], "job_id": None}
        outcomes = []
        for step_id in plan.step_ids:
            result = _run(activities.execute_workflow_step, ExecuteStepInput(
                workflow_id="production-scheduling",
                step_id=step_id,
                parameters=parameters,
                context=context,
            ))
            context = result.context
            outcomes.append(result.outcome)

        assert [o["step_id"] for o in outcomes] == plan.step_ids
        assert len(context["kanban_ids"]) == 1
        kanban = system.engine.get_kanban(context["kanban_ids"][0])
        assert context["job_id"] == kanban.job_id
        assert outcomes[1]["detail"]["work_center"] == "WC-02"
        assert system.notifier.for_team("production")[-1].context["run_id"] == "run_local"


class TestWorkflowDefinition:

    def test_business_errors_are_not_retried(self):
        assert set(NON_RETRYABLE_ERRORS) == _kanban_error_types() | {"ERPNotFoundError"}
        assert STEP_RETRY_POLICY.non_retryable_error_types == NON_RETRYABLE_ERRORS
        assert STEP_RETRY_POLICY.maximum_attempts == 5

    def test_erp_not_found_is_not_retried(self):
        assert "ERPNotFoundError" in STEP_RETRY_POLICY.non_retryable_error_types
        assert "ERPTransportError" not in STEP_RETRY_POLICY.non_retryable_error_types

    def test_create_kanban_steps_run_once(self):
        assert retry_policy_for("create_kanban") is CREATE_STEP_RETRY_POLICY
        assert CREATE_STEP_RETRY_POLICY.maximum_attempts == 1
        for step_type in ("move_inventory", "update_job", "notify_team"):
            assert retry_policy_for(step_type) is STEP_RETRY_POLICY

    def test_workflow_input_defaults(self):
        params = KanbanProcessInput(workflow_id="production-scheduling")
        assert params.parameters is None

    def test_initial_progress(self):
        assert KanbanProcessWorkflow().progress() == {"current_step": None, "completed_steps": []}

    def test_activity_names(self):
        _, activities = _activities()
        names = [getattr(fn, "__temporal_activity_definition").name for fn in activities.all()]
        assert names == ["create_kanban", "complete_kanban", "plan_workflow", "execute_workflow_step"]
