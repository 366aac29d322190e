"""Service wiring.

One KanbanSystem per process: the ERP connector plus everything that shares
its part locks, store and notifier. The API lifespan and the Temporal worker
both build one with ``build_kanban_system``.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Union

from connectors import create_connector
from connectors.erp_base import ERPConnector
from container_allocation import ContainerLifecycleManager, PartLockRegistry
from core.config import Settings, get_settings
from core.models import WorkflowDefinition
from core.observability.logging import get_logger
from core.observability.metrics import MetricsCollector, get_metrics
from kanban_engine.engine import KanbanEngine
from kanban_engine.notifier import LoggingNotifier, Notifier
from kanban_engine.runner import WorkflowRunner
from kanban_engine.store import KanbanStore
from kanban_engine.workflows import WorkflowRegistry

logger = get_logger(__name__)


@dataclass
class KanbanSystem:
    connector: ERPConnector
    engine: KanbanEngine
    lifecycle: ContainerLifecycleManager
    registry: WorkflowRegistry
    runner: WorkflowRunner
    notifier: Notifier
    metrics: MetricsCollector

    async def start(self) -> None:
        await self.connector.connect()
        logger.info(f"Kanban system started against {self.connector.get_connector_name()}")

    async def stop(self) -> None:
        await self.connector.disconnect()


def build_kanban_system(
    settings: Optional[Settings] = None,
    connector: Optional[ERPConnector] = None,
    workflows: Optional[Iterable[Union[WorkflowDefinition, Dict[str, Any]]]] = None,
    notifier: Optional[Notifier] = None,
    metrics: Optional[MetricsCollector] = None,
) -> KanbanSystem:
    """
    Assemble a KanbanSystem.

    Args:
        settings: Used to create the connector when none is given
        connector: ERP connector to use as-is
        workflows: Workflow definitions; defaults to the built-in ones
        notifier: Notification sink; defaults to LoggingNotifier
        metrics: Metrics collector; defaults to the process-wide one
    """
    if connector is None:
        connector = create_connector((settings or get_settings()).to_erp_config())

    locks = PartLockRegistry()
    notifier = notifier if notifier is not None else LoggingNotifier()
    metrics = metrics or get_metrics()

    engine = KanbanEngine(
        connector,
        store=KanbanStore(),
        locks=locks,
        notifier=notifier,
        metrics=metrics,
    )
    lifecycle = ContainerLifecycleManager(connector, locks)
    registry = WorkflowRegistry(workflows)
    runner = WorkflowRunner(engine, registry, lifecycle=lifecycle, notifier=notifier, metrics=metrics)

    return KanbanSystem(
        connector=connector,
        engine=engine,
        lifecycle=lifecycle,
        registry=registry,
        runner=runner,
        notifier=notifier,
        metrics=metrics,
    )
