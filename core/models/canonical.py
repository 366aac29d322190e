"""Core canonical data models - ERP-neutral inventory and production types.

These models represent the shop-floor entities the kanban engine reads and
mutates: containers, inventory records, jobs, work centers and customer orders.
They are independent of the PLEX wire format; connectors validate ERP payloads
into these types.

Fields are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# Base Model
# =============================================================================

class CanonicalBase(BaseModel):
    """Base model for all canonical data structures."""
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict:
        """Serialize with camelCase keys for the ERP / API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Enums
# =============================================================================

class Location(str, Enum):
    """Physical stock locations on the floor."""
    END_OF_LINE = "end_of_line"
    TPA = "tpa"
    POOL_STOCK = "pool_stock"


class ContainerStatus(str, Enum):
    """Container status values."""
    ACTIVE = "active"
    SPLIT = "split"
    MERGED = "merged"
    QUALITY_HOLD = "quality_hold"


class MergeStrategy(str, Enum):
    """How the serial number of a merged container is chosen."""
    NEW_NUMBER = "new_number"
    KEEP_FIRST = "keep_first"
    KEEP_LAST = "keep_last"


class JobStatus(str, Enum):
    """Production job status values."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderStatus(str, Enum):
    """Customer order status values."""
    PENDING = "pending"
    IN_PRODUCTION = "in_production"
    SHIPPED = "shipped"
    CANCELLED = "cancelled"


# =============================================================================
# Inventory
# =============================================================================

class Container(CanonicalBase):
    """A physical lot of a single part number.

    A container in status ``split`` keeps its original quantity as history;
    its ``child_containers`` hold the live stock.
    """
    serial_number: str
    part_number: str
    quantity: int = Field(..., gt=0)
    location: str
    status: ContainerStatus = ContainerStatus.ACTIVE
    parent_container: Optional[str] = None
    child_containers: Optional[List[str]] = None

    @property
    def is_active(self) -> bool:
        return self.status == ContainerStatus.ACTIVE


class Inventory(CanonicalBase):
    """Inventory record for one part number; owns that part's containers."""
    part_number: str
    part_description: str = ""
    quantity_available: int = 0
    location: Location = Location.END_OF_LINE
    containers: List[Container] = Field(default_factory=list)

    def find_container(self, serial_number: str) -> Optional[Container]:
        for container in self.containers:
            if container.serial_number == serial_number:
                return container
        return None

    def active_at(self, location: str) -> List[Container]:
        """Active containers currently sitting at ``location``."""
        return [
            c for c in self.containers
            if c.is_active and c.location == location
        ]


class InventoryPatch(CanonicalBase):
    """Partial update payload for an inventory record."""
    part_description: Optional[str] = None
    quantity_available: Optional[int] = None
    location: Optional[Location] = None
    containers: Optional[List[Container]] = None

    def changes(self) -> dict:
        """Only the fields that were actually set, keyed by field name."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class ContainerCreate(CanonicalBase):
    """Payload for registering a new container (serial assigned by the ERP)."""
    part_number: str
    quantity: int = Field(..., gt=0)
    location: str = Location.END_OF_LINE.value
    status: ContainerStatus = ContainerStatus.ACTIVE
    parent_container: Optional[str] = None


# =============================================================================
# Production
# =============================================================================

class Job(CanonicalBase):
    """A production job scheduled at a work center."""
    id: str
    part_number: str
    quantity: int = 0
    completion_date: datetime
    sort_order: int = 1
    work_center: str = ""
    status: JobStatus = JobStatus.PENDING
    priority: int = 1


class JobCreate(CanonicalBase):
    """Payload for creating a job (id assigned by the ERP)."""
    part_number: str
    quantity: int = 0
    completion_date: datetime
    sort_order: int = 1
    work_center: str = ""
    status: JobStatus = JobStatus.PENDING
    priority: int = 1


class JobPatch(CanonicalBase):
    """Partial job update."""
    quantity: Optional[int] = None
    completion_date: Optional[datetime] = None
    sort_order: Optional[int] = None
    work_center: Optional[str] = None
    status: Optional[JobStatus] = None
    priority: Optional[int] = None

    def changes(self) -> dict:
        return {name: getattr(self, name) for name in self.model_fields_set}


class WorkCenter(CanonicalBase):
    """A production resource with capacity and current load."""
    id: str
    name: str
    machine_group: str = ""
    capacity: int = 0
    current_load: int = 0

    @property
    def load_ratio(self) -> float:
        if self.capacity <= 0:
            return float("inf")
        return self.current_load / self.capacity


# =============================================================================
# Orders
# =============================================================================

class CustomerOrder(CanonicalBase):
    """A customer demand line."""
    id: str
    customer_id: str
    part_number: str
    quantity: int = 0
    due_date: datetime
    status: OrderStatus = OrderStatus.PENDING
    route: str = ""
