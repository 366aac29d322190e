"""
Metrics Collection for the Kanban Engine

Collects and exposes metrics for:
- Kanban lifecycle (created, activated, completed, cancelled, failed) by type
- Workflow runs (started, completed, failed) by workflow id
- Step and processor timings (average, p95)
- Containers moved by withdrawals

Metrics are held in-memory; the API exposes a snapshot at /metrics.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Any


def _kanban_counts() -> Dict[str, int]:
    return {"created": 0, "activated": 0, "completed": 0, "cancelled": 0, "failed": 0}


def _run_counts() -> Dict[str, int]:
    return {"started": 0, "completed": 0, "failed": 0}


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class KanbanMetrics:
    """Counters for kanban lifecycle transitions."""
    created: int = 0
    activated: int = 0
    completed: int = 0
    cancelled: int = 0
    failed: int = 0
    containers_moved: int = 0

    by_type: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(_kanban_counts))


@dataclass
class WorkflowRunMetrics:
    """Counters for declarative workflow runs."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    in_progress: int = 0

    by_workflow: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(_run_counts))


@dataclass
class TimingMetrics:
    """Processing time samples, bounded per stage."""
    max_samples: int = 1000
    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: str):
        samples = self.by_stage[stage]
        samples.append(duration_ms)
        if len(samples) > self.max_samples:
            del samples[: len(samples) - self.max_samples]

    def get_average(self, stage: str) -> float:
        samples = self.by_stage.get(stage, [])
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: str) -> float:
        samples = self.by_stage.get(stage, [])
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector for the kanban engine.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_kanban_created("withdrawal")
        metrics.record_processing_time("step.create_kanban", 12.5)
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self):
        self.kanbans = KanbanMetrics()
        self.workflow_runs = WorkflowRunMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    # =========================================================================
    # Kanban Metrics
    # =========================================================================

    def _bump_kanban(self, kanban_type: str, counter: str):
        with self._lock:
            setattr(self.kanbans, counter, getattr(self.kanbans, counter) + 1)
            self.kanbans.by_type[kanban_type][counter] += 1

    def record_kanban_created(self, kanban_type: str):
        self._bump_kanban(kanban_type, "created")

    def record_kanban_activated(self, kanban_type: str, containers_moved: int = 0):
        self._bump_kanban(kanban_type, "activated")
        with self._lock:
            self.kanbans.containers_moved += containers_moved

    def record_kanban_completed(self, kanban_type: str):
        self._bump_kanban(kanban_type, "completed")

    def record_kanban_cancelled(self, kanban_type: str):
        self._bump_kanban(kanban_type, "cancelled")

    def record_kanban_failed(self, kanban_type: str):
        """A kanban whose processor raised and was rolled back."""
        self._bump_kanban(kanban_type, "failed")

    # =========================================================================
    # Workflow Run Metrics
    # =========================================================================

    def record_workflow_started(self, workflow_id: str):
        with self._lock:
            self.workflow_runs.started += 1
            self.workflow_runs.in_progress += 1
            self.workflow_runs.by_workflow[workflow_id]["started"] += 1

    def record_workflow_completed(self, workflow_id: str, duration_ms: float = None):
        with self._lock:
            self.workflow_runs.completed += 1
            self.workflow_runs.in_progress = max(0, self.workflow_runs.in_progress - 1)
            self.workflow_runs.by_workflow[workflow_id]["completed"] += 1
            if duration_ms:
                self.timings.add_sample(duration_ms, f"workflow.{workflow_id}")

    def record_workflow_failed(self, workflow_id: str):
        with self._lock:
            self.workflow_runs.failed += 1
            self.workflow_runs.in_progress = max(0, self.workflow_runs.in_progress - 1)
            self.workflow_runs.by_workflow[workflow_id]["failed"] += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: str) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, [])),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "kanbans": {
                    "created": self.kanbans.created,
                    "activated": self.kanbans.activated,
                    "completed": self.kanbans.completed,
                    "cancelled": self.kanbans.cancelled,
                    "failed": self.kanbans.failed,
                    "containers_moved": self.kanbans.containers_moved,
                    "by_type": {k: dict(v) for k, v in self.kanbans.by_type.items()},
                },
                "workflow_runs": {
                    "started": self.workflow_runs.started,
                    "completed": self.workflow_runs.completed,
                    "failed": self.workflow_runs.failed,
                    "in_progress": self.workflow_runs.in_progress,
                    "by_workflow": {k: dict(v) for k, v in self.workflow_runs.by_workflow.items()},
                },
                "timings": {
                    stage: {
                        "average_ms": self.timings.get_average(stage),
                        "p95_ms": self.timings.get_p95(stage),
                    }
                    for stage in self.timings.by_stage.keys()
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_kanban_created(kanban_type: str):
    get_metrics().record_kanban_created(kanban_type)


def record_kanban_completed(kanban_type: str):
    get_metrics().record_kanban_completed(kanban_type)


def record_workflow_started(workflow_id: str):
    get_metrics().record_workflow_started(workflow_id)


def record_workflow_completed(workflow_id: str, duration_ms: float = None):
    get_metrics().record_workflow_completed(workflow_id, duration_ms)


def record_workflow_failed(workflow_id: str):
    get_metrics().record_workflow_failed(workflow_id)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
