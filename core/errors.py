"""Kanban engine error types.

Every error carries a ``details`` dict naming the entity involved, so callers
(API, Temporal activities) can report which record failed and why.
"""

from typing import Any, Dict, Iterable, Optional


class KanbanError(Exception):
    """Base exception for kanban engine errors."""
    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


# =============================================================================
# Not found
# =============================================================================

class NotFoundError(KanbanError):
    """A referenced entity does not exist."""
    pass


class KanbanNotFound(NotFoundError):
    def __init__(self, kanban_id: str):
        super().__init__(f"Kanban {kanban_id} not found", kanban_id=kanban_id)


class ContainerNotFound(NotFoundError):
    def __init__(self, serial_number: str, message: Optional[str] = None, **details: Any):
        super().__init__(
            message or f"Container {serial_number} not found",
            serial_number=serial_number,
            **details,
        )


class InventoryNotFound(NotFoundError):
    def __init__(self, part_number: str):
        super().__init__(f"Inventory for part {part_number} not found", part_number=part_number)


class JobNotFound(NotFoundError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found", job_id=job_id)


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: str):
        super().__init__(f"Customer order {order_id} not found", order_id=order_id)


class WorkflowNotFound(NotFoundError):
    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow {workflow_id} not found", workflow_id=workflow_id)


# =============================================================================
# Inventory shortfalls
# =============================================================================

class InsufficientInventory(KanbanError):
    """Candidate containers cannot cover the requested quantity."""
    def __init__(self, needed: int, available: int, **details: Any):
        super().__init__(
            f"Insufficient inventory. Need {needed}, available {available}",
            needed=needed,
            available=available,
            **details,
        )
        self.needed = needed
        self.available = available


class NoAvailableContainers(InsufficientInventory):
    """No active containers at the source location at all."""
    def __init__(self, part_number: str, location: str, needed: int = 0):
        KanbanError.__init__(
            self,
            f"No available containers for part {part_number} at {location}",
            part_number=part_number,
            location=location,
            needed=needed,
            available=0,
        )
        self.needed = needed
        self.available = 0


# =============================================================================
# Invalid requests
# =============================================================================

class InvalidRequest(KanbanError):
    """Malformed or disallowed request."""
    pass


class InvalidSplitRequest(InvalidRequest):
    pass


class InvalidMergeRequest(InvalidRequest):
    pass


class InvalidKanbanRequest(InvalidRequest):
    pass


class MissingKanbanFields(InvalidRequest):
    def __init__(self, missing: Iterable[str], step_id: Optional[str] = None):
        missing = list(missing)
        super().__init__(
            f"Missing required fields for kanban creation: {', '.join(missing)}",
            missing=missing,
            step_id=step_id,
        )
        self.missing = missing


class InvalidKanbanTransition(InvalidRequest):
    def __init__(self, kanban_id: str, current: str, target: str):
        super().__init__(
            f"Kanban {kanban_id} cannot move from {current} to {target}",
            kanban_id=kanban_id,
            current=current,
            target=target,
        )


class WorkflowInactive(InvalidRequest):
    def __init__(self, workflow_id: str):
        super().__init__(f"Workflow {workflow_id} is not active", workflow_id=workflow_id)


# =============================================================================
# Unknown operations
# =============================================================================

class UnknownOperation(KanbanError):
    """Unrecognized step type or strategy."""
    pass


class UnknownStepType(UnknownOperation):
    def __init__(self, step_type: Any, step_id: Optional[str] = None):
        super().__init__(
            f"Unknown workflow step type: {step_type}",
            step_type=str(step_type),
            step_id=step_id,
        )


class UnknownMergeStrategy(UnknownOperation):
    def __init__(self, strategy: Any):
        super().__init__(f"Unknown merge strategy: {strategy}", strategy=str(strategy))
