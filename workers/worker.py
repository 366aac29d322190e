"""Worker for the kanban workflow engine.

Connects to Temporal, builds a KanbanSystem against the configured ERP, and
executes KanbanProcessWorkflow and the kanban activities.

Run with --queue <name> to poll a queue other than the configured one.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from temporalio.worker import Worker

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from activities.kanban import KanbanActivities
from core.config import get_settings
from core.observability.logging import configure_logging, get_logger
from kanban_engine import build_kanban_system
from temporal_client import get_temporal_client
from workflows.kanban_workflow import KanbanProcessWorkflow


logger = get_logger(__name__)


async def run_worker(queue: Optional[str] = None) -> None:
    """Start a worker on one task queue.

    Args:
        queue: Task queue to poll (default: TEMPORAL_TASK_QUEUE, kanban-default)

    Raises:
        Exception: If connection to Temporal fails
    """
    settings = get_settings()
    configure_logging(settings.logging_level, settings.log_json, force=True)

    system = build_kanban_system(settings)
    await system.start()

    try:
        client = await get_temporal_client(settings)
        logger.info(f"Connected to Temporal: {client.namespace}")

        task_queue = queue or settings.temporal_task_queue
        activities = KanbanActivities(system).all()
        worker = Worker(
            client,
            task_queue=task_queue,
            workflows=[KanbanProcessWorkflow],
            activities=activities,
        )

        logger.info(f"Worker created for queue '{task_queue}':")
        logger.info(f"  - ERP connector: {system.connector.get_connector_name()}")
        logger.info(f"  - Activities: {len(activities)}")
        logger.info("Worker running... (Ctrl+C to stop)")
        await worker.run()

    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise
    finally:
        await system.stop()


def main():
    """Entry point for worker with CLI args."""
    parser = argparse.ArgumentParser(description="Kanban Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        default=None,
        help="Task queue to poll (default: TEMPORAL_TASK_QUEUE or kanban-default)"
    )

    args = parser.parse_args()
    try:
        asyncio.run(run_worker(queue=args.queue))
    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")


if __name__ == "__main__":
    main()
