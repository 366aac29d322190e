"""Mock PLEX connector.

Simulates the PLEX API in memory so the engine can run without ERP access.
Every read returns a deep copy, so callers only ever see snapshots and must
write back through ``update_*`` like they would against the real system.
"""

import asyncio
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from connectors.erp_base import (
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    ERPEntityType,
    ERPNotFoundError,
    register_connector,
)
from connectors.mock.mock_data import (
    mock_customer_orders,
    mock_inventory,
    mock_jobs,
    mock_work_centers,
)
from core.models import (
    Container,
    ContainerCreate,
    CustomerOrder,
    Inventory,
    InventoryPatch,
    Job,
    JobCreate,
    JobPatch,
    OrderStatus,
    WorkCenter,
)

logger = logging.getLogger(__name__)


@register_connector("mock")
class MockPlexConnector(ERPConnector):
    """In-memory stand-in for the PLEX ERP.

    Usage:
        connector = MockPlexConnector(ERPConfig(connector_type="mock"))
        inventory = await connector.get_inventory_by_part("PART-001")
    """

    def __init__(self, config: Optional[ERPConfig] = None):
        super().__init__(config or ERPConfig(connector_type="mock", environment="development"))
        self._delay = self.config.custom_settings.get("delay_ms", 0) / 1000.0
        self._inventory: Dict[str, Inventory] = {}
        self._jobs: List[Job] = []
        self._orders: List[CustomerOrder] = []
        self._work_centers: List[WorkCenter] = []
        self.seed(
            inventory=mock_inventory(),
            jobs=mock_jobs(),
            orders=mock_customer_orders(),
            work_centers=mock_work_centers(),
        )

    def seed(
        self,
        inventory: Optional[Iterable[Inventory]] = None,
        jobs: Optional[Iterable[Job]] = None,
        orders: Optional[Iterable[CustomerOrder]] = None,
        work_centers: Optional[Iterable[WorkCenter]] = None,
    ) -> None:
        """Replace the data sets that are passed; others are left alone."""
        if inventory is not None:
            self._inventory = {inv.part_number: inv.model_copy(deep=True) for inv in inventory}
        if jobs is not None:
            self._jobs = [job.model_copy(deep=True) for job in jobs]
        if orders is not None:
            self._orders = [order.model_copy(deep=True) for order in orders]
        if work_centers is not None:
            self._work_centers = [wc.model_copy(deep=True) for wc in work_centers]

    async def _simulate_latency(self) -> None:
        # Always yield so concurrent callers interleave like real I/O
        await asyncio.sleep(self._delay)

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    async def connect(self) -> bool:
        self._status = ERPConnectionStatus.CONNECTED
        return True

    async def disconnect(self) -> None:
        self._status = ERPConnectionStatus.DISCONNECTED

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def _require_inventory(self, part_number: str) -> Inventory:
        inventory = self._inventory.get(part_number)
        if inventory is None:
            raise ERPNotFoundError(ERPEntityType.INVENTORY, part_number)
        return inventory

    async def get_inventory(self) -> List[Inventory]:
        await self._simulate_latency()
        return [inv.model_copy(deep=True) for inv in self._inventory.values()]

    async def get_inventory_by_part(self, part_number: str) -> Inventory:
        await self._simulate_latency()
        return self._require_inventory(part_number).model_copy(deep=True)

    async def update_inventory(self, part_number: str, patch: InventoryPatch) -> Inventory:
        await self._simulate_latency()
        inventory = self._require_inventory(part_number)
        changes = patch.changes()
        if changes.get("containers") is not None:
            changes["containers"] = [c.model_copy(deep=True) for c in changes["containers"]]
        updated = inventory.model_copy(update=changes)
        self._inventory[part_number] = updated
        logger.debug(f"Inventory {part_number} patched: {sorted(changes)}")
        return updated.model_copy(deep=True)

    async def get_containers(self) -> List[Container]:
        await self._simulate_latency()
        return [
            container.model_copy(deep=True)
            for inventory in self._inventory.values()
            for container in inventory.containers
        ]

    async def create_container(self, container: ContainerCreate) -> Container:
        await self._simulate_latency()
        inventory = self._require_inventory(container.part_number)
        new_container = Container(
            serial_number=f"CONT-{uuid.uuid4().hex[:8].upper()}",
            part_number=container.part_number,
            quantity=container.quantity,
            location=container.location,
            status=container.status,
            parent_container=container.parent_container,
        )
        self._inventory[container.part_number] = inventory.model_copy(
            update={"containers": [*inventory.containers, new_container]}
        )
        return new_container.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Jobs
    # -------------------------------------------------------------------------

    def _job_index(self, job_id: str) -> int:
        for idx, job in enumerate(self._jobs):
            if job.id == job_id:
                return idx
        raise ERPNotFoundError(ERPEntityType.JOB, job_id)

    async def get_jobs(self) -> List[Job]:
        await self._simulate_latency()
        return [job.model_copy(deep=True) for job in self._jobs]

    async def create_job(self, job: JobCreate) -> Job:
        await self._simulate_latency()
        new_job = Job(id=f"job-{uuid.uuid4().hex[:8]}", **job.model_dump())
        self._jobs.append(new_job)
        return new_job.model_copy(deep=True)

    async def update_job(self, job_id: str, patch: JobPatch) -> Job:
        await self._simulate_latency()
        idx = self._job_index(job_id)
        self._jobs[idx] = self._jobs[idx].model_copy(update=patch.changes())
        return self._jobs[idx].model_copy(deep=True)

    async def reorder_jobs(self, job_ids: List[str]) -> None:
        await self._simulate_latency()
        by_id = {job.id: idx for idx, job in enumerate(self._jobs)}
        for position, job_id in enumerate(job_ids, start=1):
            idx = by_id.get(job_id)
            if idx is not None:
                self._jobs[idx] = self._jobs[idx].model_copy(update={"sort_order": position})

    async def get_work_centers(self) -> List[WorkCenter]:
        await self._simulate_latency()
        return [wc.model_copy(deep=True) for wc in self._work_centers]

    # -------------------------------------------------------------------------
    # Customer Orders
    # -------------------------------------------------------------------------

    async def get_customer_orders(self) -> List[CustomerOrder]:
        await self._simulate_latency()
        return [order.model_copy(deep=True) for order in self._orders]

    async def update_order_status(self, order_id: str, status: OrderStatus) -> CustomerOrder:
        await self._simulate_latency()
        for idx, order in enumerate(self._orders):
            if order.id == order_id:
                self._orders[idx] = order.model_copy(update={"status": OrderStatus(status)})
                return self._orders[idx].model_copy(deep=True)
        raise ERPNotFoundError(ERPEntityType.CUSTOMER_ORDER, order_id)
