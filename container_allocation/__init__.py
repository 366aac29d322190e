"""
Container Allocation Package

Decides which containers satisfy a quantity and executes container
split/merge against the ERP inventory.

Usage:
    from container_allocation import select_for_withdrawal, ContainerLifecycleManager

    chosen = select_for_withdrawal(candidates, 120)
    children = await ContainerLifecycleManager(connector).split("CONT-001", [40, 60])
"""

from .allocator import (
    select_for_withdrawal,
    total_quantity,
)

from .lifecycle import (
    ContainerLifecycleManager,
    child_serial,
)

from .locks import PartLockRegistry

__all__ = [
    "select_for_withdrawal",
    "total_quantity",
    "ContainerLifecycleManager",
    "child_serial",
    "PartLockRegistry",
]
