"""
Seed data for the mock PLEX connector.

Provides a small, realistic floor: three parts with end-of-line stock,
three scheduled jobs, three customer orders and three work centers.
"""

from datetime import datetime, timezone
from typing import List

from core.models import (
    Container,
    CustomerOrder,
    Inventory,
    Job,
    JobStatus,
    Location,
    OrderStatus,
    WorkCenter,
)


def _date(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def _container(serial: str, part: str, quantity: int) -> Container:
    return Container(
        serial_number=serial,
        part_number=part,
        quantity=quantity,
        location=Location.END_OF_LINE.value,
    )


# =============================================================================
# MOCK INVENTORY
# =============================================================================

def mock_inventory() -> List[Inventory]:
    return [
        Inventory(
            part_number="PART-001",
            part_description="Steel Bracket Assembly",
            quantity_available=250,
            location=Location.END_OF_LINE,
            containers=[
                _container("CONT-001", "PART-001", 100),
                _container("CONT-002", "PART-001", 150),
            ],
        ),
        Inventory(
            part_number="PART-002",
            part_description="Aluminum Housing",
            quantity_available=120,
            location=Location.END_OF_LINE,
            containers=[
                _container("CONT-003", "PART-002", 70),
                _container("CONT-004", "PART-002", 50),
            ],
        ),
        Inventory(
            part_number="PART-003",
            part_description="Plastic Cover",
            quantity_available=300,
            location=Location.END_OF_LINE,
            containers=[
                _container("CONT-005", "PART-003", 150),
                _container("CONT-006", "PART-003", 150),
            ],
        ),
    ]


# =============================================================================
# MOCK JOBS / WORK CENTERS
# =============================================================================

def mock_jobs() -> List[Job]:
    return [
        Job(id="job-001", part_number="PART-001", quantity=100, completion_date=_date(2024, 2, 15),
            sort_order=1, work_center="WC-01", status=JobStatus.PENDING, priority=1),
        Job(id="job-002", part_number="PART-002", quantity=50, completion_date=_date(2024, 2, 16),
            sort_order=2, work_center="WC-02", status=JobStatus.IN_PROGRESS, priority=2),
        Job(id="job-003", part_number="PART-003", quantity=75, completion_date=_date(2024, 2, 17),
            sort_order=3, work_center="WC-01", status=JobStatus.PENDING, priority=3),
    ]


def mock_work_centers() -> List[WorkCenter]:
    return [
        WorkCenter(id="WC-01", name="Assembly Line 1", machine_group="Assembly", capacity=100, current_load=60),
        WorkCenter(id="WC-02", name="Assembly Line 2", machine_group="Assembly", capacity=100, current_load=40),
        WorkCenter(id="WC-03", name="Packaging Station", machine_group="Packaging", capacity=200, current_load=80),
    ]


# =============================================================================
# MOCK CUSTOMER ORDERS
# =============================================================================

def mock_customer_orders() -> List[CustomerOrder]:
    return [
        CustomerOrder(id="order-001", customer_id="CUST-001", part_number="PART-001", quantity=50,
                      due_date=_date(2024, 2, 20), status=OrderStatus.PENDING, route="TPA"),
        CustomerOrder(id="order-002", customer_id="CUST-002", part_number="PART-002", quantity=25,
                      due_date=_date(2024, 2, 22), status=OrderStatus.IN_PRODUCTION, route="TPA"),
        CustomerOrder(id="order-003", customer_id="CUST-003", part_number="PART-003", quantity=100,
                      due_date=_date(2024, 2, 25), status=OrderStatus.PENDING, route="Pool"),
    ]
