"""
Workflow Runner

Executes registered workflows step by step, in ascending ``order``. Each step
sees its declared parameters overlaid with the caller's runtime parameters;
runtime values win, and camelCase or snake_case keys are both accepted.

Step semantics:
- create_kanban: create a kanban through the engine
- move_inventory: check availability at a location, or move containers
- update_job: update a customer order (``order_id``) or a job; the job
  defaults to the one attached to a kanban created earlier in the run
- notify_team: send a notification

A failing step stops the run. Steps already executed are not undone.
"""

import time
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Type

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from connectors.erp_base import ERPConnector, ERPNotFoundError
from container_allocation import ContainerLifecycleManager, total_quantity
from core.errors import (
    InsufficientInventory,
    InvalidRequest,
    InventoryNotFound,
    JobNotFound,
    KanbanError,
    MissingKanbanFields,
    OrderNotFound,
    UnknownStepType,
    WorkflowInactive,
)
from core.models import (
    WITHDRAWAL_ROUTES,
    CreateKanbanParams,
    CreateKanbanStep,
    JobPatch,
    JobStatus,
    Location,
    MoveInventoryAction,
    MoveInventoryParams,
    MoveInventoryStep,
    NotifyTeamParams,
    NotifyTeamStep,
    OrderStatus,
    StepParams,
    UpdateJobParams,
    UpdateJobStep,
    WorkflowStep,
)
from core.observability.logging import get_logger, log_workflow_event, with_correlation
from core.observability.metrics import MetricsCollector
from core.workflow import StepOutcome, WorkflowRunResult, WorkflowRunStatus
from kanban_engine.engine import KanbanEngine
from kanban_engine.notifier import Notifier
from kanban_engine.workflows import WorkflowRegistry

logger = get_logger(__name__)

REQUIRED_KANBAN_FIELDS = ("type", "part_number", "part_description")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _validation_details(e: ValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in e.errors()
    ]


# =============================================================================
# Parameter overlay
# =============================================================================

def normalize_parameters(params_cls: Type[StepParams], values: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase or snake_case keys to field names, dropping unknown keys."""
    fields = params_cls.model_fields
    by_alias = {to_camel(name): name for name in fields}
    normalized = {}
    for key, value in values.items():
        name = key if key in fields else by_alias.get(key)
        if name is not None:
            normalized[name] = value
    return normalized


def effective_parameters(step: WorkflowStep, runtime: Optional[Dict[str, Any]] = None) -> StepParams:
    """Declared step parameters with runtime parameters laid over them."""
    params_cls = type(step.parameters)
    merged = step.parameters.model_dump(exclude_unset=True)
    merged.update(normalize_parameters(params_cls, runtime or {}))
    try:
        return params_cls.model_validate(merged)
    except ValidationError as e:
        raise InvalidRequest(
            f"Invalid parameters for step {step.id}",
            step_id=step.id,
            errors=_validation_details(e),
        ) from e


# =============================================================================
# Run context
# =============================================================================

@dataclass
class RunContext:
    """State carried from one step to the next within a run."""
    workflow_id: str
    run_id: str
    kanban_ids: List[str] = field(default_factory=list)
    job_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "run_id": self.run_id,
            "kanban_ids": list(self.kanban_ids),
            "job_id": self.job_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunContext":
        return cls(
            workflow_id=data["workflow_id"],
            run_id=data["run_id"],
            kanban_ids=list(data.get("kanban_ids") or []),
            job_id=data.get("job_id"),
        )


def new_run_id() -> str:
    return f"run_{uuid.uuid4().hex[:12]}"


# =============================================================================
# Runner
# =============================================================================

class WorkflowRunner:
    """
    Interprets workflow definitions against the kanban engine and the ERP.

    Usage:
        runner = WorkflowRunner(engine, registry, lifecycle, notifier)
        result = await runner.execute_workflow(
            "production-scheduling",
            {"partNumber": "PART-001", "partDescription": "Widget A", "quantity": 200},
        )
    """

    def __init__(
        self,
        engine: KanbanEngine,
        registry: WorkflowRegistry,
        lifecycle: Optional[ContainerLifecycleManager] = None,
        notifier: Optional[Notifier] = None,
        metrics: Optional[MetricsCollector] = None,
        history_size: int = 100,
    ):
        self.engine = engine
        self.registry = registry
        self.lifecycle = lifecycle or ContainerLifecycleManager(engine.connector, engine.locks)
        self.notifier = notifier if notifier is not None else engine.notifier
        self.metrics = metrics or engine.metrics
        self._history: Deque[WorkflowRunResult] = deque(maxlen=history_size)

    @property
    def connector(self) -> ERPConnector:
        return self.engine.connector

    # =========================================================================
    # Runs
    # =========================================================================

    async def execute_workflow(
        self,
        workflow_id: str,
        parameters: Optional[Dict[str, Any]] = None,
    ) -> WorkflowRunResult:
        """
        Run every step of a workflow in order.

        Args:
            workflow_id: Registered workflow id
            parameters: Runtime parameters, offered to every step

        Returns:
            The completed run

        Raises:
            WorkflowNotFound: Unknown workflow id
            WorkflowInactive: Workflow is disabled
            KanbanError / ERPError: The first failing step's error, with
                ``run_id`` and ``step_id`` added to its details when it is a
                KanbanError. The failed run is kept in the history.
        """
        workflow = self.registry.require(workflow_id)
        if not workflow.is_active:
            raise WorkflowInactive(workflow_id)

        context = RunContext(workflow_id=workflow_id, run_id=new_run_id())
        result = WorkflowRunResult(
            workflow_id=workflow_id,
            run_id=context.run_id,
            status=WorkflowRunStatus.RUNNING,
            started_at=_utcnow(),
        )
        self._history.append(result)
        self.metrics.record_workflow_started(workflow_id)

        with with_correlation(workflow_id=workflow_id, workflow_run_id=context.run_id):
            log_workflow_event("Workflow started", steps=len(workflow.steps))

            for step in workflow.ordered_steps():
                try:
                    outcome = await self.execute_step(step, parameters, context)
                except Exception as e:
                    result.status = WorkflowRunStatus.FAILED
                    result.completed_at = _utcnow()
                    result.failed_step_id = step.id
                    result.error_type = type(e).__name__
                    result.error_message = str(e)
                    result.created_kanban_ids = list(context.kanban_ids)
                    if isinstance(e, KanbanError):
                        result.error_details = dict(e.details)
                        e.details.setdefault("run_id", context.run_id)
                        e.details.setdefault("step_id", step.id)
                    self.metrics.record_workflow_failed(workflow_id)
                    logger.error(f"Workflow step {step.id} failed: {e}")
                    raise
                result.executed_steps.append(outcome)

            result.status = WorkflowRunStatus.COMPLETED
            result.completed_at = _utcnow()
            result.created_kanban_ids = list(context.kanban_ids)
            self.metrics.record_workflow_completed(workflow_id, result.duration_ms)
            log_workflow_event(
                "Workflow completed",
                steps=len(result.executed_steps),
                kanbans=result.created_kanban_ids,
                duration_ms=result.duration_ms,
            )

        return result

    def recent_runs(self, workflow_id: Optional[str] = None) -> List[WorkflowRunResult]:
        """Most recent runs first."""
        runs = reversed(self._history)
        if workflow_id is None:
            return list(runs)
        return [r for r in runs if r.workflow_id == workflow_id]

    def get_run(self, run_id: str) -> Optional[WorkflowRunResult]:
        for run in self._history:
            if run.run_id == run_id:
                return run
        return None

    # =========================================================================
    # Steps
    # =========================================================================

    async def execute_step(
        self,
        step: WorkflowStep,
        parameters: Optional[Dict[str, Any]],
        context: RunContext,
    ) -> StepOutcome:
        """Execute one step; ``context`` is updated in place."""
        handlers = {
            CreateKanbanStep: self._create_kanban,
            MoveInventoryStep: self._move_inventory,
            UpdateJobStep: self._update_job,
            NotifyTeamStep: self._notify_team,
        }
        handler = handlers.get(type(step))
        if handler is None:
            raise UnknownStepType(getattr(step, "type", type(step).__name__), step_id=getattr(step, "id", None))

        with with_correlation(step_id=step.id, stage=step.type):
            start = time.perf_counter()
            params = effective_parameters(step, parameters)
            outcome = await handler(step, params, context)
            self.metrics.record_processing_time(f"step.{step.type}", (time.perf_counter() - start) * 1000)
            logger.info(f"Step {step.id} done", extra_fields=outcome.detail)
        return outcome

    async def execute_step_by_id(
        self,
        workflow_id: str,
        step_id: str,
        parameters: Optional[Dict[str, Any]],
        context: RunContext,
    ) -> StepOutcome:
        workflow = self.registry.require(workflow_id)
        step = workflow.get_step(step_id)
        if step is None:
            raise InvalidRequest(
                f"Workflow {workflow_id} has no step {step_id}",
                workflow_id=workflow_id,
                step_id=step_id,
            )
        return await self.execute_step(step, parameters, context)

    async def _create_kanban(self, step: CreateKanbanStep, params: CreateKanbanParams, context: RunContext) -> StepOutcome:
        values = params.model_dump(exclude_none=True)
        missing = [name for name in REQUIRED_KANBAN_FIELDS if not values.get(name)]
        if missing:
            raise MissingKanbanFields(missing, step_id=step.id)

        kanban = await self.engine.create_kanban(values)
        context.kanban_ids.append(kanban.id)
        if kanban.job_id:
            context.job_id = kanban.job_id

        return StepOutcome(
            step_id=step.id,
            step_type=step.type,
            order=step.order,
            kanban_id=kanban.id,
            job_id=kanban.job_id,
            detail={"status": kanban.status.value, "containers": kanban.container_ids},
        )

    async def _move_inventory(self, step: MoveInventoryStep, params: MoveInventoryParams, context: RunContext) -> StepOutcome:
        if params.action == MoveInventoryAction.MOVE:
            to_location = params.to_location
            if to_location is None and params.withdrawal_type is not None:
                to_location = WITHDRAWAL_ROUTES[params.withdrawal_type][1]
            if to_location is None or not params.container_ids:
                raise InvalidRequest(
                    "Moving inventory requires container ids and a destination",
                    step_id=step.id,
                )
            moved = await self.lifecycle.relocate(params.container_ids, to_location.value)
            return StepOutcome(
                step_id=step.id,
                step_type=step.type,
                order=step.order,
                detail={"moved": [c.serial_number for c in moved], "to_location": to_location.value},
            )

        if not params.part_number:
            raise MissingKanbanFields(["part_number"], step_id=step.id)

        location = params.location
        if location is None and params.withdrawal_type is not None:
            location = WITHDRAWAL_ROUTES[params.withdrawal_type][0]
        if location is None:
            location = Location.END_OF_LINE

        try:
            inventory = await self.connector.get_inventory_by_part(params.part_number)
        except ERPNotFoundError:
            raise InventoryNotFound(params.part_number) from None

        available = total_quantity(inventory.active_at(location.value))
        needed = params.quantity or 0
        if available < needed:
            raise InsufficientInventory(
                needed=needed,
                available=available,
                part_number=params.part_number,
                location=location.value,
            )

        return StepOutcome(
            step_id=step.id,
            step_type=step.type,
            order=step.order,
            detail={"part_number": params.part_number, "location": location.value, "available": available},
        )

    async def _update_job(self, step: UpdateJobStep, params: UpdateJobParams, context: RunContext) -> StepOutcome:
        if params.order_id:
            return await self._update_order(step, params)

        job_id = params.job_id or context.job_id
        if not job_id:
            raise InvalidRequest(
                "No job to update: pass job_id or create a production kanban earlier in the workflow",
                step_id=step.id,
            )

        changes: Dict[str, Any] = {}
        if params.status is not None:
            try:
                changes["status"] = JobStatus(params.status)
            except ValueError:
                raise InvalidRequest(
                    f"Unknown job status: {params.status}",
                    step_id=step.id,
                    status=params.status,
                ) from None
        if params.priority is not None:
            changes["priority"] = params.priority
        if params.work_center is not None:
            changes["work_center"] = params.work_center
        if params.assign_work_center:
            changes["work_center"] = await self._least_loaded_work_center(step)

        try:
            job = await self.connector.update_job(job_id, JobPatch(**changes))
        except ERPNotFoundError:
            raise JobNotFound(job_id) from None

        context.job_id = job.id
        return StepOutcome(
            step_id=step.id,
            step_type=step.type,
            order=step.order,
            job_id=job.id,
            detail={
                "status": job.status.value,
                "work_center": job.work_center,
                "priority": job.priority,
            },
        )

    async def _update_order(self, step: UpdateJobStep, params: UpdateJobParams) -> StepOutcome:
        try:
            status = OrderStatus(params.status)
        except ValueError:
            raise InvalidRequest(
                f"Unknown order status: {params.status}",
                step_id=step.id,
                status=params.status,
            ) from None

        try:
            order = await self.connector.update_order_status(params.order_id, status)
        except ERPNotFoundError:
            raise OrderNotFound(params.order_id) from None

        return StepOutcome(
            step_id=step.id,
            step_type=step.type,
            order=step.order,
            detail={"order_id": order.id, "status": order.status.value},
        )

    async def _least_loaded_work_center(self, step: UpdateJobStep) -> str:
        work_centers = await self.connector.get_work_centers()
        if not work_centers:
            raise InvalidRequest("No work centers available to assign", step_id=step.id)
        return min(work_centers, key=lambda wc: wc.load_ratio).id

    async def _notify_team(self, step: NotifyTeamStep, params: NotifyTeamParams, context: RunContext) -> StepOutcome:
        await self.notifier.notify(
            params.team,
            params.message,
            workflow_id=context.workflow_id,
            run_id=context.run_id,
            kanban_ids=list(context.kanban_ids),
            job_id=context.job_id,
        )
        return StepOutcome(
            step_id=step.id,
            step_type=step.type,
            order=step.order,
            detail={"team": params.team},
        )
