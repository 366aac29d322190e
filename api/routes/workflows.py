"""Workflow endpoints.

List the registered workflow definitions, execute one with runtime
parameters, and look up recent runs.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from api.dependencies import get_system
from core.models import WorkflowDefinition
from kanban_engine import KanbanSystem


router = APIRouter()


@router.get("", response_model=List[WorkflowDefinition])
async def list_workflows(system: KanbanSystem = Depends(get_system)) -> List[WorkflowDefinition]:
    return system.registry.all()


@router.get("/runs")
async def list_runs(
    workflow_id: Optional[str] = None,
    system: KanbanSystem = Depends(get_system),
) -> List[Dict[str, Any]]:
    """Recent runs, newest first."""
    return [run.to_dict() for run in system.runner.recent_runs(workflow_id)]


@router.get("/runs/{run_id}")
async def get_run(run_id: str, system: KanbanSystem = Depends(get_system)) -> Dict[str, Any]:
    run = system.runner.get_run(run_id)
    if run is None:
        raise HTTPException(status_code=404, detail="Workflow run not found")
    return run.to_dict()


@router.get("/{workflow_id}", response_model=WorkflowDefinition)
async def get_workflow(workflow_id: str, system: KanbanSystem = Depends(get_system)) -> WorkflowDefinition:
    return system.registry.require(workflow_id)


@router.post("/{workflow_id}/execute")
async def execute_workflow(
    workflow_id: str,
    parameters: Optional[Dict[str, Any]] = Body(None),
    system: KanbanSystem = Depends(get_system),
) -> Dict[str, Any]:
    """Execute a workflow in-process.

    The body is the runtime parameter object handed to every step, e.g.
    ``{"partNumber": "PART-001", "partDescription": "Widget A", "quantity": 120}``.
    """
    result = await system.runner.execute_workflow(workflow_id, parameters or {})
    return result.to_dict()
