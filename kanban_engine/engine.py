"""
Kanban Workflow Engine

Creates kanbans, runs the type-specific processor synchronously during
creation, and drives the status lifecycle:

    pending -> active -> completed
    pending | active -> cancelled

Withdrawal kanbans move whole containers between floor locations and become
``active``. Production kanbans start or create a job in the ERP and stay
``pending`` until someone completes them.

Creation is all-or-nothing from the store's point of view: if the processor
raises, the kanban is removed again and the error propagates. Changes already
written to the ERP are not rolled back.
"""

import random
import string
import time
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Union

from pydantic import ValidationError

from connectors.erp_base import ERPConnector, ERPNotFoundError
from container_allocation import PartLockRegistry, select_for_withdrawal
from core.errors import (
    InsufficientInventory,
    InvalidKanbanRequest,
    InvalidKanbanTransition,
    InventoryNotFound,
    JobNotFound,
    NoAvailableContainers,
)
from core.models import (
    WITHDRAWAL_ROUTES,
    Inventory,
    InventoryPatch,
    JobCreate,
    JobPatch,
    JobStatus,
    Kanban,
    KanbanCreate,
    KanbanStatus,
    KanbanType,
)
from core.observability.logging import get_logger, log_kanban_event, with_correlation
from core.observability.metrics import MetricsCollector, get_metrics
from kanban_engine.notifier import LoggingNotifier, Notifier
from kanban_engine.store import KanbanStore

logger = get_logger(__name__)

# New production jobs are due a week out
PRODUCTION_LEAD_TIME = timedelta(days=7)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_kanban_id() -> str:
    """``kanban_<epoch-ms>_<9 random base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"kanban_{int(time.time() * 1000)}_{suffix}"


class KanbanEngine:
    """
    Kanban lifecycle over an ERP connector.

    Usage:
        engine = KanbanEngine(connector)
        kanban = await engine.create_kanban({
            "type": "withdrawal",
            "partNumber": "PART-001",
            "partDescription": "Widget A",
            "quantity": 120,
            "withdrawalType": "end_to_tpa",
        })
        await engine.complete_kanban(kanban.id)
    """

    def __init__(
        self,
        connector: ERPConnector,
        store: Optional[KanbanStore] = None,
        locks: Optional[PartLockRegistry] = None,
        notifier: Optional[Notifier] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.connector = connector
        self.store = store if store is not None else KanbanStore()
        self.locks = locks or PartLockRegistry()
        self.notifier = notifier if notifier is not None else LoggingNotifier()
        self.metrics = metrics or get_metrics()

    # =========================================================================
    # Creation
    # =========================================================================

    async def create_kanban(self, data: Union[KanbanCreate, dict]) -> Kanban:
        """
        Create a kanban and run its processor.

        Args:
            data: KanbanCreate, or a dict with snake_case or camelCase keys

        Returns:
            The stored kanban after processing

        Raises:
            InvalidKanbanRequest: Malformed data, or a withdrawal without a
                withdrawal type or positive quantity
            InventoryNotFound / NoAvailableContainers / InsufficientInventory:
                Withdrawal could not be satisfied
            JobNotFound: Production kanban references an unknown job
        """
        if not isinstance(data, KanbanCreate):
            try:
                data = KanbanCreate.model_validate(data)
            except ValidationError as e:
                raise InvalidKanbanRequest(
                    "Invalid kanban data",
                    errors=[
                        {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                        for err in e.errors()
                    ],
                ) from e

        kanban = Kanban(
            **data.model_dump(),
            id=generate_kanban_id(),
            created_at=_utcnow(),
            status=KanbanStatus.PENDING,
        )
        self.store.add(kanban)

        with with_correlation(kanban_id=kanban.id, part_number=kanban.part_number):
            start = time.perf_counter()
            try:
                if kanban.type == KanbanType.WITHDRAWAL:
                    kanban = await self._process_withdrawal(kanban)
                else:
                    kanban = await self._process_production(kanban)
            except Exception as e:
                self.store.remove(kanban.id)
                self.metrics.record_kanban_failed(kanban.type.value)
                logger.error(
                    f"Kanban processing failed, removed {kanban.id}: {e}",
                    extra_fields={"type": kanban.type.value},
                )
                raise

            duration_ms = (time.perf_counter() - start) * 1000
            self.metrics.record_kanban_created(kanban.type.value)
            self.metrics.record_processing_time(f"kanban.{kanban.type.value}", duration_ms)
            log_kanban_event(
                "Kanban created",
                type=kanban.type.value,
                status=kanban.status.value,
                containers=kanban.container_ids,
                job_id=kanban.job_id,
            )

        return kanban

    # =========================================================================
    # Processors
    # =========================================================================

    async def _load_inventory(self, part_number: str) -> Inventory:
        try:
            return await self.connector.get_inventory_by_part(part_number)
        except ERPNotFoundError:
            raise InventoryNotFound(part_number) from None

    async def _process_withdrawal(self, kanban: Kanban) -> Kanban:
        """Move whole containers from the route's source to its destination."""
        if kanban.withdrawal_type is None:
            raise InvalidKanbanRequest(
                "Withdrawal kanban requires a withdrawal type",
                kanban_id=kanban.id,
            )
        if kanban.quantity <= 0:
            raise InvalidKanbanRequest(
                "Withdrawal kanban requires a positive quantity",
                kanban_id=kanban.id,
                quantity=kanban.quantity,
            )

        source, destination = WITHDRAWAL_ROUTES[kanban.withdrawal_type]
        part_number = kanban.part_number

        async with self.locks.hold(part_number):
            inventory = await self._load_inventory(part_number)
            available = inventory.active_at(source.value)
            if not available:
                raise NoAvailableContainers(part_number, source.value, needed=kanban.quantity)

            try:
                selected = select_for_withdrawal(available, kanban.quantity)
            except InsufficientInventory as e:
                e.details.update(part_number=part_number, location=source.value)
                raise

            # Each patch carries every move made so far
            containers = list(inventory.containers)
            for chosen in selected:
                containers = [
                    c.model_copy(update={"location": destination.value})
                    if c.serial_number == chosen.serial_number else c
                    for c in containers
                ]
                await self.connector.update_inventory(part_number, InventoryPatch(containers=containers))

        kanban = kanban.model_copy(update={
            "status": KanbanStatus.ACTIVE,
            "container_ids": [c.serial_number for c in selected],
            "from_location": source,
            "to_location": destination,
        })
        self.store.update(kanban)
        self.metrics.record_kanban_activated(kanban.type.value, containers_moved=len(selected))
        logger.info(
            f"Withdrawal {source.value} -> {destination.value}: {len(selected)} containers",
            extra_fields={"containers": kanban.container_ids, "quantity": kanban.quantity},
        )
        return kanban

    async def _process_production(self, kanban: Kanban) -> Kanban:
        """Start the referenced job, or create one, then tell production."""
        priority = kanban.priority or 1

        if kanban.job_id:
            try:
                await self.connector.update_job(
                    kanban.job_id,
                    JobPatch(status=JobStatus.IN_PROGRESS, priority=priority),
                )
            except ERPNotFoundError:
                raise JobNotFound(kanban.job_id) from None
        else:
            job = await self.connector.create_job(JobCreate(
                part_number=kanban.part_number,
                quantity=kanban.quantity,
                completion_date=_utcnow() + PRODUCTION_LEAD_TIME,
                sort_order=priority,
                work_center=kanban.work_center or "",
                status=JobStatus.PENDING,
                priority=priority,
            ))
            kanban = kanban.model_copy(update={"job_id": job.id})
            self.store.update(kanban)

        await self.notifier.notify(
            "production",
            "Production kanban created",
            kanban_id=kanban.id,
            part_number=kanban.part_number,
            work_center=kanban.work_center,
            priority=kanban.priority,
            job_id=kanban.job_id,
        )
        return kanban

    # =========================================================================
    # Transitions
    # =========================================================================

    async def complete_kanban(self, kanban_id: str) -> Kanban:
        """Mark a kanban completed. Completing twice is a no-op."""
        kanban = self.store.require(kanban_id)
        if kanban.status == KanbanStatus.COMPLETED:
            return kanban
        if kanban.status.is_terminal:
            raise InvalidKanbanTransition(kanban_id, kanban.status.value, KanbanStatus.COMPLETED.value)

        kanban = kanban.model_copy(update={
            "status": KanbanStatus.COMPLETED,
            "completed_at": _utcnow(),
        })
        self.store.update(kanban)
        self.metrics.record_kanban_completed(kanban.type.value)
        log_kanban_event("Kanban completed", kanban_id=kanban_id, type=kanban.type.value)
        return kanban

    async def cancel_kanban(self, kanban_id: str) -> Kanban:
        """Mark a kanban cancelled. Cancelling twice is a no-op."""
        kanban = self.store.require(kanban_id)
        if kanban.status == KanbanStatus.CANCELLED:
            return kanban
        if kanban.status.is_terminal:
            raise InvalidKanbanTransition(kanban_id, kanban.status.value, KanbanStatus.CANCELLED.value)

        kanban = kanban.model_copy(update={
            "status": KanbanStatus.CANCELLED,
            "cancelled_at": _utcnow(),
        })
        self.store.update(kanban)
        self.metrics.record_kanban_cancelled(kanban.type.value)
        log_kanban_event("Kanban cancelled", kanban_id=kanban_id, type=kanban.type.value)
        return kanban

    # =========================================================================
    # Queries
    # =========================================================================

    def get_kanban(self, kanban_id: str) -> Kanban:
        return self.store.require(kanban_id)

    def get_kanbans(self) -> List[Kanban]:
        return self.store.all()

    def get_kanbans_by_type(self, kanban_type: Union[KanbanType, str]) -> List[Kanban]:
        return self.store.by_type(KanbanType(kanban_type))

    def get_kanbans_by_status(self, status: Union[KanbanStatus, str]) -> List[Kanban]:
        return self.store.by_status(KanbanStatus(status))
