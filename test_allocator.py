"""
Container Allocator Tests

Validates container selection for withdrawals:
1. Largest containers are taken first, whole
2. Selection stops as soon as the quantity is covered
3. Shortfalls raise InsufficientInventory with needed/available
4. Input is never mutated
"""

import asyncio

import pytest

from container_allocation import PartLockRegistry, select_for_withdrawal, total_quantity
from core.errors import InsufficientInventory
from core.models import Container


def _containers(*quantities):
    return [
        Container(serial_number=f"C{i}", part_number="PART-001", quantity=q, location="end_of_line")
        for i, q in enumerate(quantities, start=1)
    ]


class TestSelectForWithdrawal:
    """Greedy largest-first selection."""

    def test_largest_first_until_covered(self):
        selected = select_for_withdrawal(_containers(100, 150), 120)
        assert [c.serial_number for c in selected] == ["C2"]

    def test_takes_several_when_one_is_not_enough(self):
        selected = select_for_withdrawal(_containers(30, 50, 20, 40), 85)
        assert [c.quantity for c in selected] == [50, 40]
        assert total_quantity(selected) >= 85

    def test_exact_total_uses_everything(self):
        selected = select_for_withdrawal(_containers(70, 50), 120)
        assert [c.serial_number for c in selected] == ["C1", "C2"]

    def test_ties_keep_input_order(self):
        selected = select_for_withdrawal(_containers(50, 50, 50), 100)
        assert [c.serial_number for c in selected] == ["C1", "C2"]

    def test_no_partial_consumption(self):
        """Containers are never split to hit the quantity exactly."""
        selected = select_for_withdrawal(_containers(100), 10)
        assert selected[0].quantity == 100

    def test_zero_or_negative_quantity_selects_nothing(self):
        containers = _containers(10, 20)
        assert select_for_withdrawal(containers, 0) == []
        assert select_for_withdrawal(containers, -5) == []

    def test_insufficient_inventory(self):
        with pytest.raises(InsufficientInventory) as exc_info:
            select_for_withdrawal(_containers(70, 50), 200)

        assert exc_info.value.needed == 200
        assert exc_info.value.available == 120
        assert exc_info.value.details == {"needed": 200, "available": 120}
        assert "Need 200, available 120" in str(exc_info.value)

    def test_empty_candidates_with_positive_quantity(self):
        with pytest.raises(InsufficientInventory) as exc_info:
            select_for_withdrawal([], 1)
        assert exc_info.value.available == 0

    def test_input_not_mutated(self):
        containers = _containers(10, 30, 20)
        before = [c.model_copy() for c in containers]

        select_for_withdrawal(containers, 35)

        assert containers == before


class TestPartLockRegistry:
    """Per-part locks serialize read-modify-write sequences."""

    def test_same_part_same_lock(self):
        locks = PartLockRegistry()
        assert locks.lock_for("PART-001") is locks.lock_for("PART-001")
        assert locks.lock_for("PART-001") is not locks.lock_for("PART-002")

    def test_hold_serializes_same_part(self):
        locks = PartLockRegistry()
        events = []

        async def worker(name):
            async with locks.hold("PART-001"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        async def run():
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(run())
        assert events == ["a-in", "a-out", "b-in", "b-out"]

    def test_different_parts_do_not_block(self):
        locks = PartLockRegistry()

        async def run():
            async with locks.hold("PART-001"):
                assert locks.is_locked("PART-001")
                assert not locks.is_locked("PART-002")
                async with locks.hold("PART-002"):
                    assert locks.is_locked("PART-002")
            assert not locks.is_locked("PART-001")

        asyncio.run(run())
