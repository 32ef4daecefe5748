"""
Node liveness registry.

Explicitly constructed owner of the node store, heartbeat table, subscription
bus, both periodic workers and the command dispatcher. Nothing starts at
import time: call start() to launch the workers and stop() to tear them down.
stop() leaves the store intact for inspection.

Usage:
    registry = NodeRegistry(config=DetectionConfig.from_env(), probe=probe)
    unsubscribe = registry.subscribe(lambda nodes: print(len(nodes)))
    registry.start()
    ...
    registry.commands.freeze("render-node-01")
    registry.stop()
"""

from __future__ import annotations

import logging
import random
import threading
from typing import Any, Callable, List, Optional

from admin.config import DetectionConfig
from admin.discovery import CandidateProbe, DiscoveryFeed
from admin.dispatcher import CommandDispatcher
from admin.heartbeat_monitor import HeartbeatMonitor
from admin.models import NodeRecord, NodeStatus, RegistryStatus
from admin.scheduling import Clock, DeferredTasks, Scheduler, ThreadTimerScheduler, utc_now
from admin.store import HeartbeatTable, NodeStore
from admin.subscriptions import Subscriber, SubscriptionBus

logger = logging.getLogger(__name__)


class NodeRegistry:

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        probe: Optional[CandidateProbe] = None,
        clock: Clock = utc_now,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
    ):
        self._config = config or DetectionConfig()
        self._config.validate()
        self.clock = clock
        self.rng = rng or random.Random()

        self.lock = threading.RLock()
        self.store = NodeStore(self.lock)
        self.heartbeats = HeartbeatTable(self.lock)
        self.bus = SubscriptionBus(self.store.list)
        self.deferred = DeferredTasks(scheduler or ThreadTimerScheduler())

        self.discovery = DiscoveryFeed(
            self.store, self.heartbeats, self.bus, self.lock,
            self.get_config, clock, self.rng, probe=probe, deferred=self.deferred,
        )
        self.monitor = HeartbeatMonitor(
            self.store, self.heartbeats, self.bus, self.lock,
            self.get_config, clock, self.rng, deferred=self.deferred,
        )
        self.commands = CommandDispatcher(
            self.store, self.heartbeats, self.bus, self.lock,
            self.get_config, clock, self.deferred,
        )

        self._running = False
        self._lifecycle_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lifecycle_lock:
            if self._running:
                logger.warning("Node registry already running")
                return
            config = self._config
            logger.info(f"Initializing VPC node detection from admin node: {config.admin_node_ip}")
            logger.info(f"Scanning VPC range: {config.vpc_cidr}")
            self._start_workers()
            self._running = True

    def stop(self) -> None:
        with self._lifecycle_lock:
            if not self._running:
                return
            self._stop_workers()
            cancelled = self.deferred.cancel_all()
            self._running = False
            logger.info(f"Node registry stopped ({cancelled} pending restarts cancelled, {len(self.store)} nodes kept)")

    def _start_workers(self) -> None:
        config = self._config
        self.discovery.interval_seconds = config.discovery_interval_seconds
        self.monitor.interval_seconds = config.heartbeat_check_interval_seconds
        self.discovery.start(run_immediately=True)
        self.monitor.start(run_immediately=False)

    def _stop_workers(self) -> None:
        self.discovery.stop()
        self.monitor.stop()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self) -> DetectionConfig:
        return self._config

    def configure(self, **changes: Any) -> DetectionConfig:
        """
        Replace runtime parameters (admin ip, VPC, render port, windows...).

        A running registry restarts both periodic workers so the new intervals
        and windows take effect immediately.
        """
        with self._lifecycle_lock:
            updated = self._config.updated(**changes)
            self._config = updated
            logger.info(
                f"VPC configuration updated: admin={updated.admin_node_ip}, "
                f"cidr={updated.vpc_cidr}, render_port={updated.render_node_port}"
            )
            if self._running:
                self._stop_workers()
                self._start_workers()
            return updated

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def list_nodes(self) -> List[NodeRecord]:
        return self.store.list()

    def get_node(self, node_id: str) -> Optional[NodeRecord]:
        return self.commands.get_details(node_id)

    def find_by_address(self, ip: str) -> Optional[NodeRecord]:
        record = self.store.find_by_address(ip)
        return record.model_copy(deep=True) if record is not None else None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.bus.subscribe(callback)

    def status(self) -> RegistryStatus:
        config = self._config
        nodes = self.store.list()
        online = sum(1 for node in nodes if node.node_status == NodeStatus.ONLINE)
        return RegistryStatus(
            admin_node_ip=config.admin_node_ip,
            vpc_cidr=config.vpc_cidr,
            vpc_id=config.vpc_id,
            render_node_port=config.render_node_port,
            total_nodes=len(nodes),
            online_nodes=online,
            offline_nodes=len(nodes) - online,
            is_scanning=self.discovery.is_scanning,
            is_running=self._running,
        )

    # ------------------------------------------------------------------
    # Contact
    # ------------------------------------------------------------------

    def record_heartbeat(self, node_id: str) -> bool:
        """
        Record network-level contact from a node.

        Returns:
            False if the node is unknown
        """
        now = self.clock()
        with self.lock:
            node = self.store.get(node_id)
            if node is None:
                return False
            self.heartbeats.record(node_id, now)
            revived = node.node_status != NodeStatus.ONLINE and not self.deferred.is_pending(node_id)
            if revived:
                node.node_status = NodeStatus.ONLINE
                node.last_seen = now
                logger.info(f"Node {node.server_name} ({node.ip}) back online (heartbeat)")

        if revived:
            self.bus.publish()
        return True

    def refresh(self) -> bool:
        """Manual discovery scan; False if one was already in flight."""
        logger.info("Manual refresh triggered")
        return self.discovery.scan()
