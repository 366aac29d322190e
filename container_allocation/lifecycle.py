"""
Container Lifecycle Manager

Splits one container into several, merges several into one, and moves
containers between locations. Containers live inside the inventory record of
their part number, so each operation is a read of that record followed by a
single inventory patch, taken under the part's lock.

Invariants:
- A split parent keeps its quantity as history, gets status ``split`` and
  lists its children; the children's quantities sum to the parent's.
- A merge removes every source container and adds exactly one ``merged``
  container holding their total.
"""

import uuid
from typing import Iterable, List, Optional, Sequence, Set, Union

from connectors.erp_base import ERPConnector, ERPNotFoundError
from container_allocation.locks import PartLockRegistry
from core.errors import (
    ContainerNotFound,
    InvalidMergeRequest,
    InvalidRequest,
    InvalidSplitRequest,
    InventoryNotFound,
    UnknownMergeStrategy,
)
from core.models import (
    Container,
    ContainerStatus,
    Inventory,
    InventoryPatch,
    MergeStrategy,
)
from core.observability.logging import get_logger

logger = get_logger(__name__)


def child_serial(parent_serial: str, index: int) -> str:
    """Serial of the ``index``-th (1-based) child of a split."""
    return f"{parent_serial}-SPLIT-{index}"


def new_merge_serial(taken: Set[str]) -> str:
    while True:
        serial = f"CONT-MERGE-{uuid.uuid4().hex[:8].upper()}"
        if serial not in taken:
            return serial


class ContainerLifecycleManager:
    """Executes split, merge and relocation against the ERP inventory.

    Usage:
        manager = ContainerLifecycleManager(connector, locks)
        children = await manager.split("CONT-001", [40, 60])
        merged = await manager.merge(["CONT-003", "CONT-004"], "keep_first")
    """

    def __init__(self, connector: ERPConnector, locks: Optional[PartLockRegistry] = None):
        self.connector = connector
        self.locks = locks or PartLockRegistry()

    async def _load_inventory(self, part_number: str) -> Inventory:
        try:
            return await self.connector.get_inventory_by_part(part_number)
        except ERPNotFoundError:
            raise InventoryNotFound(part_number) from None

    async def _resolve(self, serial_numbers: Iterable[str]) -> List[Container]:
        """Containers for the given serials, in the given order; unknown ones skipped."""
        by_serial = {c.serial_number: c for c in await self.connector.get_containers()}
        return [by_serial[s] for s in serial_numbers if s in by_serial]

    # =========================================================================
    # Split
    # =========================================================================

    async def split(self, serial_number: str, quantities: Sequence[int]) -> List[Container]:
        """
        Split a container into one child per quantity.

        Args:
            serial_number: Container to split
            quantities: Child quantities; at least two, all positive, summing
                to the container's quantity

        Returns:
            The new child containers, in ``quantities`` order

        Raises:
            InvalidSplitRequest: Fewer than two quantities, a non-positive
                quantity, a sum mismatch, or a container that is not active
            ContainerNotFound: ``serial_number`` does not resolve
        """
        quantities = list(quantities)
        if len(quantities) < 2:
            raise InvalidSplitRequest(
                "A split needs at least two quantities",
                serial_number=serial_number,
                quantities=quantities,
            )
        if any(q <= 0 for q in quantities):
            raise InvalidSplitRequest(
                "Split quantities must be positive",
                serial_number=serial_number,
                quantities=quantities,
            )

        resolved = await self._resolve([serial_number])
        if not resolved:
            raise ContainerNotFound(serial_number)
        part_number = resolved[0].part_number

        async with self.locks.hold(part_number):
            inventory = await self._load_inventory(part_number)
            parent = inventory.find_container(serial_number)
            if parent is None:
                raise ContainerNotFound(serial_number)
            if not parent.is_active:
                raise InvalidSplitRequest(
                    f"Container {serial_number} is {parent.status.value} and cannot be split",
                    serial_number=serial_number,
                    status=parent.status.value,
                )
            if sum(quantities) != parent.quantity:
                raise InvalidSplitRequest(
                    f"Split quantities sum to {sum(quantities)}, container {serial_number} holds {parent.quantity}",
                    serial_number=serial_number,
                    quantities=quantities,
                    container_quantity=parent.quantity,
                )

            children = [
                Container(
                    serial_number=child_serial(serial_number, index),
                    part_number=parent.part_number,
                    quantity=quantity,
                    location=parent.location,
                    status=ContainerStatus.ACTIVE,
                    parent_container=serial_number,
                )
                for index, quantity in enumerate(quantities, start=1)
            ]
            split_parent = parent.model_copy(update={
                "status": ContainerStatus.SPLIT,
                "child_containers": [c.serial_number for c in children],
            })
            containers = [
                split_parent if c.serial_number == serial_number else c
                for c in inventory.containers
            ] + children

            await self.connector.update_inventory(part_number, InventoryPatch(containers=containers))

        logger.info(
            f"Container {serial_number} split into {len(children)}",
            extra_fields={"part_number": part_number, "children": split_parent.child_containers},
        )
        return children

    # =========================================================================
    # Merge
    # =========================================================================

    async def merge(
        self,
        serial_numbers: Sequence[str],
        strategy: Union[MergeStrategy, str] = MergeStrategy.NEW_NUMBER,
    ) -> Container:
        """
        Merge containers of one part into a single ``merged`` container.

        Serials are resolved in caller order; unknown serials are skipped as
        long as at least two resolve. ``keep_first``/``keep_last`` reuse the
        first/last resolved serial in that order.

        Raises:
            InvalidMergeRequest: Fewer than two serials, duplicates, mixed part
                numbers, or a source that has already been split
            UnknownMergeStrategy: ``strategy`` is not a MergeStrategy
            ContainerNotFound: Fewer than two serials resolve
        """
        serial_numbers = list(serial_numbers)
        if len(serial_numbers) < 2:
            raise InvalidMergeRequest(
                "Need at least 2 containers to merge",
                serial_numbers=serial_numbers,
            )
        if len(set(serial_numbers)) != len(serial_numbers):
            raise InvalidMergeRequest(
                "Duplicate serial numbers in merge request",
                serial_numbers=serial_numbers,
            )
        try:
            strategy = MergeStrategy(strategy)
        except ValueError:
            raise UnknownMergeStrategy(strategy) from None

        by_serial = {c.serial_number: c for c in await self.connector.get_containers()}
        taken = set(by_serial)
        missing = [s for s in serial_numbers if s not in by_serial]
        resolved = [by_serial[s] for s in serial_numbers if s in by_serial]
        if len(resolved) < 2:
            raise ContainerNotFound(
                missing[0],
                message="Need at least 2 existing containers to merge",
                missing=missing,
            )
        if missing:
            logger.warning(f"Merging without unknown containers: {missing}")

        part_numbers = sorted({c.part_number for c in resolved})
        if len(part_numbers) > 1:
            raise InvalidMergeRequest(
                "Cannot merge containers of different part numbers",
                serial_numbers=serial_numbers,
                part_numbers=part_numbers,
            )
        part_number = part_numbers[0]

        async with self.locks.hold(part_number):
            inventory = await self._load_inventory(part_number)
            sources = [
                c for c in (inventory.find_container(r.serial_number) for r in resolved)
                if c is not None
            ]
            if len(sources) < 2:
                raise ContainerNotFound(
                    resolved[0].serial_number,
                    message="Containers changed before the merge could be applied",
                )
            split_sources = [c.serial_number for c in sources if c.status == ContainerStatus.SPLIT]
            if split_sources:
                raise InvalidMergeRequest(
                    "Split containers cannot be merged",
                    serial_numbers=split_sources,
                )

            if strategy == MergeStrategy.KEEP_FIRST:
                merged_serial = sources[0].serial_number
            elif strategy == MergeStrategy.KEEP_LAST:
                merged_serial = sources[-1].serial_number
            else:
                merged_serial = new_merge_serial(taken)

            merged = Container(
                serial_number=merged_serial,
                part_number=part_number,
                quantity=sum(c.quantity for c in sources),
                location=sources[0].location,
                status=ContainerStatus.MERGED,
            )
            source_serials = {c.serial_number for c in sources}
            containers = [
                c for c in inventory.containers if c.serial_number not in source_serials
            ] + [merged]

            await self.connector.update_inventory(part_number, InventoryPatch(containers=containers))

        logger.info(
            f"Merged {len(sources)} containers into {merged.serial_number}",
            extra_fields={"part_number": part_number, "strategy": strategy.value, "quantity": merged.quantity},
        )
        return merged

    # =========================================================================
    # Relocate
    # =========================================================================

    async def relocate(self, serial_numbers: Sequence[str], to_location: str) -> List[Container]:
        """Move active containers of one part to ``to_location`` in a single patch."""
        serial_numbers = list(serial_numbers)
        if not serial_numbers:
            raise InvalidRequest("No containers given to move")

        resolved = await self._resolve(serial_numbers)
        found = {c.serial_number for c in resolved}
        missing = [s for s in serial_numbers if s not in found]
        if missing:
            raise ContainerNotFound(missing[0], missing=missing)

        part_numbers = sorted({c.part_number for c in resolved})
        if len(part_numbers) > 1:
            raise InvalidRequest(
                "Containers to move belong to different part numbers",
                serial_numbers=serial_numbers,
                part_numbers=part_numbers,
            )
        part_number = part_numbers[0]

        async with self.locks.hold(part_number):
            inventory = await self._load_inventory(part_number)
            targets = set(serial_numbers)
            inactive = [
                c.serial_number for c in inventory.containers
                if c.serial_number in targets and not c.is_active
            ]
            if inactive:
                raise InvalidRequest("Only active containers can be moved", serial_numbers=inactive)

            containers = [
                c.model_copy(update={"location": to_location}) if c.serial_number in targets else c
                for c in inventory.containers
            ]
            await self.connector.update_inventory(part_number, InventoryPatch(containers=containers))

        logger.info(
            f"Moved {len(serial_numbers)} containers to {to_location}",
            extra_fields={"part_number": part_number, "containers": serial_numbers},
        )
        return [c for c in containers if c.serial_number in targets]
