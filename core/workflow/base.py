"""Base workflow run types and utilities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class WorkflowRunStatus(str, Enum):
    """Workflow run status values."""
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass
class StepOutcome:
    """What a single executed step produced."""
    step_id: str
    step_type: str
    order: int
    kanban_id: Optional[str] = None
    job_id: Optional[str] = None
    detail: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step_id": self.step_id,
            "step_type": self.step_type,
            "order": self.order,
            "kanban_id": self.kanban_id,
            "job_id": self.job_id,
            "detail": self.detail,
        }


@dataclass
class WorkflowRunResult:
    """Standard workflow run result structure."""
    workflow_id: str
    run_id: str
    status: WorkflowRunStatus
    started_at: datetime
    completed_at: Optional[datetime] = None

    # Steps in execution order, only those that finished
    executed_steps: List[StepOutcome] = field(default_factory=list)
    created_kanban_ids: List[str] = field(default_factory=list)

    # Error information
    failed_step_id: Optional[str] = None
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == WorkflowRunStatus.COMPLETED

    @property
    def duration_ms(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "workflow_id": self.workflow_id,
            "run_id": self.run_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "executed_steps": [s.to_dict() for s in self.executed_steps],
            "created_kanban_ids": self.created_kanban_ids,
            "error": {
                "step_id": self.failed_step_id,
                "type": self.error_type,
                "message": self.error_message,
                "details": self.error_details,
            } if self.error_message else None,
        }
