"""Kanban signal models.

A kanban replaces a physical card: either a withdrawal (move existing stock
between locations) or a production instruction (optionally linked to a job).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import Field

from core.models.canonical import CanonicalBase, Location


class KanbanType(str, Enum):
    WITHDRAWAL = "withdrawal"
    PRODUCTION = "production"


class KanbanStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (KanbanStatus.COMPLETED, KanbanStatus.CANCELLED)


class WithdrawalType(str, Enum):
    """Withdrawal card colours on the floor.

    end_to_tpa  - green card, end of line to TPA
    end_to_pool - dark blue card, end of line to pool stock
    pool_to_tpa - light blue card, pool stock to TPA
    """
    END_TO_TPA = "end_to_tpa"
    END_TO_POOL = "end_to_pool"
    POOL_TO_TPA = "pool_to_tpa"


# (source, destination) for each withdrawal type
WITHDRAWAL_ROUTES: Dict[WithdrawalType, Tuple[Location, Location]] = {
    WithdrawalType.END_TO_TPA: (Location.END_OF_LINE, Location.TPA),
    WithdrawalType.END_TO_POOL: (Location.END_OF_LINE, Location.POOL_STOCK),
    WithdrawalType.POOL_TO_TPA: (Location.POOL_STOCK, Location.TPA),
}


class KanbanCreate(CanonicalBase):
    """Caller-supplied fields for a new kanban."""
    type: KanbanType
    part_number: str
    part_description: str
    quantity: int = Field(default=0, ge=0)

    # Withdrawal
    withdrawal_type: Optional[WithdrawalType] = None

    # Production
    work_center: Optional[str] = None
    priority: Optional[int] = None
    job_id: Optional[str] = None

    customer_id: Optional[str] = None
    route: Optional[str] = None


class Kanban(KanbanCreate):
    """A stored kanban record."""
    id: str
    status: KanbanStatus = KanbanStatus.PENDING
    created_at: datetime
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    from_location: Optional[Location] = None
    to_location: Optional[Location] = None

    # Non-owning references into the container store
    container_ids: List[str] = Field(default_factory=list)
