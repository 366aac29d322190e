"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from api.dependencies import get_system
from connectors.erp_base import ERPConnectionStatus
from core import __version__
from kanban_engine import KanbanSystem


router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check(system: KanbanSystem = Depends(get_system)) -> HealthResponse:
    """Health check endpoint."""
    erp_status = system.connector.connection_status
    return HealthResponse(
        status="healthy" if erp_status == ERPConnectionStatus.CONNECTED else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=__version__,
        services={
            "api": "up",
            "erp": f"{system.connector.get_connector_name()}:{erp_status.value}",
            "kanbans": str(len(system.engine.store)),
        }
    )


@router.get("/ready")
async def readiness_check(response: Response, system: KanbanSystem = Depends(get_system)) -> Dict[str, str]:
    """Readiness probe for Kubernetes."""
    if system.connector.connection_status != ERPConnectionStatus.CONNECTED:
        response.status_code = 503
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Liveness probe for Kubernetes."""
    return {"status": "alive"}
