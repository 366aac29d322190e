"""Metrics endpoint."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from api.dependencies import get_system
from kanban_engine import KanbanSystem


router = APIRouter()


@router.get("/metrics")
async def get_metrics_summary(system: KanbanSystem = Depends(get_system)) -> Dict[str, Any]:
    """Counters and timings since start, plus current kanbans by status."""
    summary = system.metrics.get_summary()
    summary["kanbans_by_status"] = system.engine.store.counts_by_status()
    return summary
