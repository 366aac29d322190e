"""
Container Allocator

Chooses which containers satisfy a withdrawal quantity. Containers are taken
whole, largest first, until the requested quantity is covered.

The allocator does not filter: callers pass only containers that are active
and at the source location. It never mutates its input.
"""

from typing import List, Sequence

from core.models import Container
from core.errors import InsufficientInventory


def select_for_withdrawal(containers: Sequence[Container], quantity_needed: int) -> List[Container]:
    """
    Select containers for a withdrawal.

    Sorts candidates by quantity descending (ties keep input order) and takes
    the shortest prefix whose total reaches ``quantity_needed``.

    Args:
        containers: Pre-filtered candidate containers
        quantity_needed: Quantity to cover; zero or negative selects nothing

    Returns:
        The selected containers, largest first

    Raises:
        InsufficientInventory: All candidates together fall short
    """
    selected: List[Container] = []
    total_quantity = 0

    for container in sorted(containers, key=lambda c: c.quantity, reverse=True):
        if total_quantity >= quantity_needed:
            break
        selected.append(container)
        total_quantity += container.quantity

    if total_quantity < quantity_needed:
        raise InsufficientInventory(needed=quantity_needed, available=total_quantity)

    return selected


def total_quantity(containers: Sequence[Container]) -> int:
    return sum(c.quantity for c in containers)
