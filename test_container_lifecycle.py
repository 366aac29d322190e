"""
Container Lifecycle Tests

Validates split, merge and relocation against the mock PLEX connector:
1. Split children sum to the parent; parent keeps its quantity as history
2. Merge removes the sources and adds exactly one merged container
3. Invalid requests are rejected before anything is written
"""

import asyncio

import pytest

from connectors.mock import MockPlexConnector
from container_allocation import ContainerLifecycleManager, PartLockRegistry
from core.errors import (
    ContainerNotFound,
    InvalidMergeRequest,
    InvalidRequest,
    InvalidSplitRequest,
    UnknownMergeStrategy,
    UnknownOperation,
)
from core.models import ContainerStatus, MergeStrategy


def _manager():
    connector = MockPlexConnector()
    return connector, ContainerLifecycleManager(connector, PartLockRegistry())


async def _containers_by_serial(connector, part_number):
    inventory = await connector.get_inventory_by_part(part_number)
    return {c.serial_number: c for c in inventory.containers}


class TestSplit:

    def test_split_creates_children_and_marks_parent(self):
        connector, manager = _manager()

        async def run():
            children = await manager.split("CONT-001", [40, 60])
            return children, await _containers_by_serial(connector, "PART-001")

        children, containers = asyncio.run(run())

        assert [c.serial_number for c in children] == ["CONT-001-SPLIT-1", "CONT-001-SPLIT-2"]
        assert [c.quantity for c in children] == [40, 60]
        for child in children:
            assert child.status == ContainerStatus.ACTIVE
            assert child.parent_container == "CONT-001"
            assert child.location == "end_of_line"

        parent = containers["CONT-001"]
        assert parent.status == ContainerStatus.SPLIT
        assert parent.quantity == 100
        assert parent.child_containers == ["CONT-001-SPLIT-1", "CONT-001-SPLIT-2"]
        assert sum(containers[s].quantity for s in parent.child_containers) == parent.quantity

    def test_split_needs_two_quantities(self):
        _, manager = _manager()
        with pytest.raises(InvalidSplitRequest):
            asyncio.run(manager.split("CONT-001", [100]))

    def test_split_rejects_non_positive_quantities(self):
        _, manager = _manager()
        with pytest.raises(InvalidSplitRequest):
            asyncio.run(manager.split("CONT-001", [100, 0]))

    def test_split_sum_mismatch_rejected(self):
        connector, manager = _manager()
        with pytest.raises(InvalidSplitRequest) as exc_info:
            asyncio.run(manager.split("CONT-001", [40, 50]))

        assert exc_info.value.details["container_quantity"] == 100
        containers = asyncio.run(_containers_by_serial(connector, "PART-001"))
        assert containers["CONT-001"].status == ContainerStatus.ACTIVE

    def test_split_unknown_container(self):
        _, manager = _manager()
        with pytest.raises(ContainerNotFound):
            asyncio.run(manager.split("CONT-999", [1, 2]))

    def test_split_container_twice_rejected(self):
        _, manager = _manager()

        async def run():
            await manager.split("CONT-001", [50, 50])
            await manager.split("CONT-001", [50, 50])

        with pytest.raises(InvalidSplitRequest):
            asyncio.run(run())


class TestMerge:

    def test_merge_new_number(self):
        connector, manager = _manager()

        async def run():
            merged = await manager.merge(["CONT-003", "CONT-004"], MergeStrategy.NEW_NUMBER)
            return merged, await _containers_by_serial(connector, "PART-002")

        merged, containers = asyncio.run(run())

        assert merged.serial_number.startswith("CONT-MERGE-")
        assert merged.quantity == 120
        assert merged.status == ContainerStatus.MERGED
        assert merged.part_number == "PART-002"
        assert merged.location == "end_of_line"
        assert "CONT-003" not in containers
        assert "CONT-004" not in containers
        assert list(containers) == [merged.serial_number]

    def test_merge_keep_first_and_keep_last(self):
        _, manager = _manager()
        first = asyncio.run(manager.merge(["CONT-004", "CONT-003"], "keep_first"))
        assert first.serial_number == "CONT-004"

        _, manager = _manager()
        last = asyncio.run(manager.merge(["CONT-004", "CONT-003"], "keep_last"))
        assert last.serial_number == "CONT-003"

    def test_merge_skips_unknown_serials(self):
        _, manager = _manager()
        merged = asyncio.run(manager.merge(["CONT-003", "CONT-999", "CONT-004"], "keep_last"))
        assert merged.serial_number == "CONT-004"
        assert merged.quantity == 120

    def test_merge_needs_two_serials(self):
        _, manager = _manager()
        with pytest.raises(InvalidMergeRequest):
            asyncio.run(manager.merge(["CONT-003"], "new_number"))

    def test_merge_needs_two_existing_containers(self):
        _, manager = _manager()
        with pytest.raises(ContainerNotFound):
            asyncio.run(manager.merge(["CONT-003", "CONT-999"], "new_number"))

    def test_merge_unknown_strategy(self):
        _, manager = _manager()
        with pytest.raises(UnknownMergeStrategy) as exc_info:
            asyncio.run(manager.merge(["CONT-003", "CONT-004"], "biggest_wins"))
        assert isinstance(exc_info.value, UnknownOperation)

    def test_merge_different_parts_rejected(self):
        connector, manager = _manager()
        with pytest.raises(InvalidMergeRequest):
            asyncio.run(manager.merge(["CONT-001", "CONT-003"], "new_number"))

        containers = asyncio.run(_containers_by_serial(connector, "PART-001"))
        assert "CONT-001" in containers

    def test_merge_split_container_rejected(self):
        _, manager = _manager()

        async def run():
            await manager.split("CONT-001", [50, 50])
            await manager.merge(["CONT-001", "CONT-002"], "new_number")

        with pytest.raises(InvalidMergeRequest):
            asyncio.run(run())

    def test_merge_split_children(self):
        """Children of a split can be merged back together."""
        connector, manager = _manager()

        async def run():
            await manager.split("CONT-001", [30, 70])
            merged = await manager.merge(["CONT-001-SPLIT-1", "CONT-001-SPLIT-2"], "new_number")
            return merged, await _containers_by_serial(connector, "PART-001")

        merged, containers = asyncio.run(run())
        assert merged.quantity == 100
        assert "CONT-001-SPLIT-1" not in containers
        assert containers["CONT-001"].status == ContainerStatus.SPLIT


class TestRelocate:

    def test_relocate_moves_listed_containers(self):
        connector, manager = _manager()

        async def run():
            moved = await manager.relocate(["CONT-001"], "pool_stock")
            return moved, await _containers_by_serial(connector, "PART-001")

        moved, containers = asyncio.run(run())
        assert [c.serial_number for c in moved] == ["CONT-001"]
        assert containers["CONT-001"].location == "pool_stock"
        assert containers["CONT-002"].location == "end_of_line"

    def test_relocate_unknown_container(self):
        _, manager = _manager()
        with pytest.raises(ContainerNotFound):
            asyncio.run(manager.relocate(["CONT-999"], "tpa"))

    def test_relocate_requires_containers(self):
        _, manager = _manager()
        with pytest.raises(InvalidRequest):
            asyncio.run(manager.relocate([], "tpa"))
