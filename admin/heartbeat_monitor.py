"""
Admin Heartbeat Monitor

Background worker that checks every render node's last contact against the
clock and derives its declared status.

Key responsibilities:
- Mark nodes Offline when no heartbeat arrived within the retention window
- Refresh simulated telemetry of Online nodes
- Evict nodes silent for longer than the eviction window
- Publish a new snapshot when anything changed

Runs in a background thread, checks every 2 seconds by default.
"""

import logging
import random
import threading
from datetime import datetime
from typing import Callable, List, Optional

from admin.config import DetectionConfig
from admin.models import NodeRecord, NodeStatus
from admin.scheduling import Clock, DeferredTasks, IntervalWorker
from admin.store import HeartbeatTable, NodeStore
from admin.subscriptions import SubscriptionBus

logger = logging.getLogger(__name__)

CPU_BOUNDS = (5.0, 95.0)
GPU_BOUNDS = (10.0, 100.0)
MEMORY_BOUNDS = (15.0, 90.0)
GPU_BASE_TEMPERATURE_C = 45.0
GPU_TEMPERATURE_SPAN_C = 30.0


def _walk(current: float, step: float, bounds: tuple, rng: random.Random) -> float:
    low, high = bounds
    delta = (rng.random() - 0.5) * step
    return float(round(max(low, min(high, current + delta))))


def refresh_node_metrics(node: NodeRecord, rng: random.Random, now: datetime) -> None:
    """Bounded random walk of CPU/GPU/memory usage plus derived GPU temperature."""
    metrics = node.metrics
    metrics.cpu_percent = _walk(metrics.cpu_percent, 10.0, CPU_BOUNDS, rng)
    metrics.gpu_percent = _walk(metrics.gpu_percent, 15.0, GPU_BOUNDS, rng)
    metrics.memory_percent = _walk(metrics.memory_percent, 5.0, MEMORY_BOUNDS, rng)

    temperature = (
        GPU_BASE_TEMPERATURE_C
        + (metrics.gpu_percent / 100.0) * GPU_TEMPERATURE_SPAN_C
        + rng.random() * 5.0
    )
    node.gpu_info.temperature = f"{temperature:.0f}°C"
    node.gpu_info.utilization = f"{metrics.gpu_percent:.0f}%"
    node.last_seen = now


class HeartbeatMonitor(IntervalWorker):
    """
    Derive node status from the heartbeat table.
    Runs in background thread.
    """

    name = "heartbeat-monitor"

    def __init__(
        self,
        store: NodeStore,
        heartbeats: HeartbeatTable,
        bus: SubscriptionBus,
        lock: threading.RLock,
        config_source: Callable[[], DetectionConfig],
        clock: Clock,
        rng: random.Random,
        deferred: Optional[DeferredTasks] = None,
    ):
        super().__init__(config_source().heartbeat_check_interval_seconds)
        self.store = store
        self.heartbeats = heartbeats
        self.bus = bus
        self.lock = lock
        self.config_source = config_source
        self.clock = clock
        self.rng = rng
        self.deferred = deferred

    def run_once(self) -> None:
        self.check_heartbeats()

    def elapsed_since_contact(self, node: NodeRecord, now: datetime) -> float:
        last_contact = self.heartbeats.last_contact(node.id, default=node.connection_info.connected_at)
        return (now - last_contact).total_seconds()

    def check_heartbeats(self) -> bool:
        """
        One monitor pass over every record.

        Returns:
            True if any status changed or any record was evicted
        """
        config = self.config_source()
        now = self.clock()
        went_offline: List[str] = []
        evicted: List[str] = []

        with self.lock:
            for node in self.store.records():
                elapsed = self.elapsed_since_contact(node, now)

                if elapsed > config.retention_window_seconds and node.node_status == NodeStatus.ONLINE:
                    node.node_status = NodeStatus.OFFLINE
                    went_offline.append(node.id)
                    logger.warning(f"Node {node.server_name} ({node.ip}) went offline (no heartbeat for {elapsed:.1f}s)")

                if node.node_status == NodeStatus.ONLINE:
                    refresh_node_metrics(node, self.rng, now)

            for node in self.store.records():
                elapsed = self.elapsed_since_contact(node, now)
                if elapsed > config.eviction_window_seconds:
                    self.store.remove(node.id)
                    self.heartbeats.forget(node.id)
                    if self.deferred is not None:
                        self.deferred.cancel(node.id)
                    evicted.append(node.id)
                    logger.warning(f"Node {node.server_name} ({node.ip}) evicted after {elapsed:.1f}s of silence")

        changed = bool(went_offline or evicted)
        if changed:
            logger.info(f"Heartbeat check: {len(went_offline)} nodes marked Offline, {len(evicted)} evicted")
            self.bus.publish()
        return changed
