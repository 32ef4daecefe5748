"""
Admin Discovery Feed

Periodically asks an external probe for candidate render nodes and upserts
every reachable one into the node store.

The probe is any callable returning DiscoveryCandidate objects. The admin
service wires in RegisteredAddressProbe, which checks each address that
registered through /api/register; tests hand in static candidate lists.

Scans are single-flight: a tick that finds a scan in progress is skipped.
"""

from __future__ import annotations

import logging
import random
import threading
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from admin import node_catalog
from admin.config import DetectionConfig
from admin.models import (
    ConnectionInfo,
    DiscoveryCandidate,
    NodeOperations,
    NodeRecord,
    NodeStatus,
)
from admin.scheduling import Clock, DeferredTasks, IntervalWorker
from admin.store import HeartbeatTable, NodeStore
from admin.subscriptions import SubscriptionBus
from shared.network import last_octet

logger = logging.getLogger(__name__)

CandidateProbe = Callable[[], Iterable[DiscoveryCandidate]]


class DiscoveryFeed(IntervalWorker):

    name = "discovery-feed"

    def __init__(
        self,
        store: NodeStore,
        heartbeats: HeartbeatTable,
        bus: SubscriptionBus,
        lock: threading.RLock,
        config_source: Callable[[], DetectionConfig],
        clock: Clock,
        rng: random.Random,
        probe: Optional[CandidateProbe] = None,
        deferred: Optional[DeferredTasks] = None,
    ):
        super().__init__(config_source().discovery_interval_seconds)
        self.store = store
        self.heartbeats = heartbeats
        self.bus = bus
        self.lock = lock
        self.config_source = config_source
        self.clock = clock
        self.rng = rng
        self.probe = probe
        self.deferred = deferred
        self._scan_guard = threading.Lock()

    @property
    def is_scanning(self) -> bool:
        return self._scan_guard.locked()

    def run_once(self) -> None:
        self.scan()

    def scan(self) -> bool:
        """
        Run one discovery pass unless another is already in flight.

        Returns:
            False if the scan was skipped, True otherwise
        """
        if not self._scan_guard.acquire(blocking=False):
            logger.debug("Discovery scan already in flight, skipping")
            return False

        try:
            logger.debug("Scanning VPC for render nodes...")
            if self.probe is None:
                return True
            try:
                candidates = list(self.probe())
            except Exception as e:
                logger.error(f"Discovery probe failed: {e}", exc_info=True)
                return True

            changed = False
            for candidate in candidates:
                try:
                    changed = self.observe(candidate) or changed
                except Exception as e:
                    logger.error(f"Failed to process discovery candidate {candidate.ip}: {e}", exc_info=True)

            if changed:
                self.bus.publish()
            return True
        finally:
            self._scan_guard.release()

    def observe(self, candidate: DiscoveryCandidate) -> bool:
        """
        Apply one probe outcome to the store.

        Returns:
            True if a node was added or came back Online
        """
        if not candidate.reachable:
            logger.debug(f"Candidate {candidate.ip} unreachable: {candidate.error or 'no response'}")
            return False

        now = self.clock()
        with self.lock:
            existing = self.store.find_by_address(candidate.ip)
            if existing is None:
                record = self.build_record(candidate, now)
                self.store.upsert(record)
                self.heartbeats.record(record.id, now)
                logger.info(f"New render node registered: {record.server_name} ({record.ip})")
                return True

            self.heartbeats.record(existing.id, now)
            if self.deferred is not None and self.deferred.is_pending(existing.id):
                return False

            revived = existing.node_status != NodeStatus.ONLINE
            existing.node_status = NodeStatus.ONLINE
            existing.last_seen = now
            if revived:
                logger.info(f"Render node {existing.server_name} ({existing.ip}) back online")
            return revived

    def _node_id_for(self, candidate: DiscoveryCandidate) -> str:
        octet = last_octet(candidate.ip)
        base_id = (candidate.hostname or "").strip() or f"node-{octet}"
        node_id = base_id
        attempt = 1
        while True:
            taken = self.store.get(node_id)
            if taken is None or taken.ip == candidate.ip:
                return node_id
            node_id = f"{base_id}-{octet}" if attempt == 1 else f"{base_id}-{octet}-{attempt}"
            attempt += 1

    def build_record(self, candidate: DiscoveryCandidate, now: datetime) -> NodeRecord:
        config = self.config_source()
        octet = last_octet(candidate.ip)
        return NodeRecord(
            id=self._node_id_for(candidate),
            server_name=(candidate.hostname or "").strip() or f"Node-{octet}",
            ip=candidate.ip,
            region_id=node_catalog.region_for(candidate.ip),
            instance_max=config.default_instance_max,
            node_status=NodeStatus.ONLINE,
            last_seen=now,
            metrics=node_catalog.initial_metrics(self.rng),
            gpu_info=node_catalog.gpu_for(candidate.ip),
            system_info=node_catalog.system_for(candidate.ip),
            connection_info=ConnectionInfo(
                admin_node_ip=config.admin_node_ip,
                connected_at=now,
                heartbeat_interval=config.heartbeat_check_interval_seconds,
                vpc_id=config.vpc_id,
                subnet=config.vpc_cidr,
            ),
            operations=NodeOperations(can_freeze=True, can_restart=True, can_remote=True),
        )


def static_probe(candidates: List[DiscoveryCandidate]) -> CandidateProbe:
    """Probe that always reports the same candidates."""
    def probe() -> List[DiscoveryCandidate]:
        return [candidate.model_copy() for candidate in candidates]
    return probe
