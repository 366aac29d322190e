"""Request dependencies shared by the route modules."""

from fastapi import HTTPException, Request

from kanban_engine import KanbanSystem


def get_system(request: Request) -> KanbanSystem:
    """The KanbanSystem attached to the running app."""
    system = getattr(request.app.state, "system", None)
    if system is None:
        raise HTTPException(status_code=503, detail="Kanban system is not running")
    return system
