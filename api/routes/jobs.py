"""Production job endpoints."""

from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_system
from core.errors import InvalidRequest, JobNotFound
from core.models import CanonicalBase, Job, WorkCenter
from kanban_engine import KanbanSystem


router = APIRouter()


class ReorderRequest(CanonicalBase):
    """New schedule order; first id gets sort order 1."""
    job_ids: List[str]


@router.get("", response_model=List[Job])
async def list_jobs(system: KanbanSystem = Depends(get_system)) -> List[Job]:
    """Jobs in schedule order."""
    jobs = await system.connector.get_jobs()
    return sorted(jobs, key=lambda j: j.sort_order)


@router.post("/reorder", response_model=List[Job])
async def reorder_jobs(
    request: ReorderRequest,
    system: KanbanSystem = Depends(get_system),
) -> List[Job]:
    if len(set(request.job_ids)) != len(request.job_ids):
        raise InvalidRequest("Duplicate job ids in reorder request", job_ids=request.job_ids)

    known = {j.id for j in await system.connector.get_jobs()}
    for job_id in request.job_ids:
        if job_id not in known:
            raise JobNotFound(job_id)

    await system.connector.reorder_jobs(request.job_ids)
    jobs = await system.connector.get_jobs()
    return sorted(jobs, key=lambda j: j.sort_order)


@router.get("/work-centers", response_model=List[WorkCenter])
async def list_work_centers(system: KanbanSystem = Depends(get_system)) -> List[WorkCenter]:
    return await system.connector.get_work_centers()
