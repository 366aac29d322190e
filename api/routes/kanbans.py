"""Kanban endpoints.

Create kanbans (which runs withdrawal or production processing immediately),
list and filter them, and move them to completed or cancelled.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_system
from core.models import Kanban, KanbanCreate, KanbanStatus, KanbanType
from kanban_engine import KanbanSystem


router = APIRouter()


@router.get("", response_model=List[Kanban], response_model_exclude_none=True)
async def list_kanbans(
    type: Optional[KanbanType] = None,
    status: Optional[KanbanStatus] = None,
    system: KanbanSystem = Depends(get_system),
) -> List[Kanban]:
    """List kanbans in creation order, optionally filtered by type and status."""
    kanbans = system.engine.get_kanbans()
    if type:
        kanbans = [k for k in kanbans if k.type == type]
    if status:
        kanbans = [k for k in kanbans if k.status == status]
    return kanbans


@router.post("", response_model=Kanban, response_model_exclude_none=True, status_code=201)
async def create_kanban(
    request: KanbanCreate,
    system: KanbanSystem = Depends(get_system),
) -> Kanban:
    """Create a kanban.

    Withdrawal kanbans move containers right away and come back ``active``;
    production kanbans come back ``pending`` with a job attached.
    """
    return await system.engine.create_kanban(request)


@router.get("/{kanban_id}", response_model=Kanban, response_model_exclude_none=True)
async def get_kanban(kanban_id: str, system: KanbanSystem = Depends(get_system)) -> Kanban:
    return system.engine.get_kanban(kanban_id)


@router.post("/{kanban_id}/complete", response_model=Kanban, response_model_exclude_none=True)
async def complete_kanban(kanban_id: str, system: KanbanSystem = Depends(get_system)) -> Kanban:
    return await system.engine.complete_kanban(kanban_id)


@router.post("/{kanban_id}/cancel", response_model=Kanban, response_model_exclude_none=True)
async def cancel_kanban(kanban_id: str, system: KanbanSystem = Depends(get_system)) -> Kanban:
    return await system.engine.cancel_kanban(kanban_id)
