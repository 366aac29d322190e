"""Container endpoints.

List containers across all parts, and split or merge them.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from api.dependencies import get_system
from core.models import CanonicalBase, Container, ContainerStatus, MergeStrategy
from kanban_engine import KanbanSystem


router = APIRouter()


class SplitRequest(CanonicalBase):
    """Split one container into the given quantities."""
    serial_number: str
    quantities: List[int] = Field(..., description="Child quantities, summing to the container quantity")


class MergeRequest(CanonicalBase):
    """Merge containers of one part."""
    serial_numbers: List[str]
    # Plain string so an unknown strategy reaches UnknownMergeStrategy
    strategy: str = MergeStrategy.NEW_NUMBER.value


@router.get("", response_model=List[Container], response_model_exclude_none=True)
async def list_containers(
    part_number: Optional[str] = None,
    location: Optional[str] = None,
    status: Optional[ContainerStatus] = None,
    system: KanbanSystem = Depends(get_system),
) -> List[Container]:
    containers = await system.connector.get_containers()
    if part_number:
        containers = [c for c in containers if c.part_number == part_number]
    if location:
        containers = [c for c in containers if c.location == location]
    if status:
        containers = [c for c in containers if c.status == status]
    return containers


@router.post("/split", response_model=List[Container], response_model_exclude_none=True)
async def split_container(
    request: SplitRequest,
    system: KanbanSystem = Depends(get_system),
) -> List[Container]:
    """Split a container; returns the new children."""
    return await system.lifecycle.split(request.serial_number, request.quantities)


@router.post("/merge", response_model=Container, response_model_exclude_none=True)
async def merge_containers(
    request: MergeRequest,
    system: KanbanSystem = Depends(get_system),
) -> Container:
    """Merge containers; returns the merged container."""
    return await system.lifecycle.merge(request.serial_numbers, request.strategy)
