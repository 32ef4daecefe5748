"""
Admin Command Dispatcher

Freeze / restart / remote-connect / bulk operations against render node
records. Preconditions come from each record's capability flags and every call
returns an explicit OperationResult.

Restart is two-phase: the node goes Offline immediately and a deferred task
keyed by node id brings it back Online after the restart delay. The deferred
task re-reads the store when it fires and leaves evicted or re-mutated nodes
alone.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Iterable, Optional, Tuple, Union

from admin.config import DetectionConfig
from admin.models import (
    BulkOperation,
    BulkOperationResult,
    NodeOperation,
    NodeRecord,
    NodeStatus,
    OperationError,
    OperationResult,
    RemoteConnection,
)
from admin.scheduling import Clock, DeferredTasks
from admin.store import HeartbeatTable, NodeStore
from admin.subscriptions import SubscriptionBus

logger = logging.getLogger(__name__)

_CAPABILITY_FLAGS = {
    NodeOperation.FREEZE: "can_freeze",
    NodeOperation.RESTART: "can_restart",
    NodeOperation.REMOTE: "can_remote",
}


class CommandDispatcher:

    def __init__(
        self,
        store: NodeStore,
        heartbeats: HeartbeatTable,
        bus: SubscriptionBus,
        lock: threading.RLock,
        config_source: Callable[[], DetectionConfig],
        clock: Clock,
        deferred: DeferredTasks,
    ):
        self.store = store
        self.heartbeats = heartbeats
        self.bus = bus
        self.lock = lock
        self.config_source = config_source
        self.clock = clock
        self.deferred = deferred

    def _validate(
        self, node_id: str, operation: NodeOperation
    ) -> Tuple[Optional[NodeRecord], Optional[OperationResult]]:
        node = self.store.get(node_id)
        if node is None:
            return None, OperationResult(
                node_id=node_id,
                operation=operation,
                success=False,
                error=OperationError.NOT_FOUND,
                message=f"Render node '{node_id}' not found",
            )

        flag = _CAPABILITY_FLAGS[operation]
        if not getattr(node.operations, flag):
            return node, OperationResult(
                node_id=node_id,
                operation=operation,
                success=False,
                error=OperationError.NOT_PERMITTED,
                message=f"Render node '{node_id}' does not allow {operation.value} ({flag} is false)",
            )
        return node, None

    def _stamp(self, node: NodeRecord, operation: NodeOperation, now: datetime) -> None:
        node.operations.last_operation = operation
        node.operations.operation_time = now

    def freeze(self, node_id: str) -> OperationResult:
        with self.lock:
            node, failure = self._validate(node_id, NodeOperation.FREEZE)
            if failure is not None:
                logger.warning(failure.message)
                return failure

            logger.info(f"Freezing node {node.server_name} ({node.ip})")
            self._stamp(node, NodeOperation.FREEZE, self.clock())
            node.operations.can_freeze = False

        self.bus.publish()
        return OperationResult(
            node_id=node_id,
            operation=NodeOperation.FREEZE,
            success=True,
            message=f"Render node '{node_id}' frozen",
        )

    def restart(self, node_id: str) -> OperationResult:
        config = self.config_source()
        with self.lock:
            node, failure = self._validate(node_id, NodeOperation.RESTART)
            if failure is not None:
                logger.warning(failure.message)
                return failure

            logger.info(f"Restarting node {node.server_name} ({node.ip})")
            started_at = self.clock()
            node.node_status = NodeStatus.OFFLINE
            self._stamp(node, NodeOperation.RESTART, started_at)
            self.deferred.schedule(
                node_id,
                config.restart_delay_seconds,
                lambda: self._complete_restart(node_id, started_at),
            )

        self.bus.publish()
        return OperationResult(
            node_id=node_id,
            operation=NodeOperation.RESTART,
            success=True,
            message=f"Render node '{node_id}' restarting",
        )

    def _complete_restart(self, node_id: str, started_at: datetime) -> None:
        with self.lock:
            node = self.store.get(node_id)
            if node is None:
                logger.info(f"Restart of '{node_id}' finished after eviction, ignoring")
                return
            ops = node.operations
            if ops.last_operation != NodeOperation.RESTART or ops.operation_time != started_at:
                logger.info(f"Restart of '{node_id}' superseded by {ops.last_operation}, ignoring")
                return

            now = self.clock()
            node.node_status = NodeStatus.ONLINE
            node.operations.can_freeze = True
            node.last_seen = now
            self.heartbeats.record(node_id, now)
            logger.info(f"Node {node.server_name} ({node.ip}) back online after restart")

        self.bus.publish()

    def connect_remote(self, node_id: str) -> OperationResult:
        config = self.config_source()
        with self.lock:
            node, failure = self._validate(node_id, NodeOperation.REMOTE)
            if failure is not None:
                logger.warning(failure.message)
                return failure

            logger.info(f"Establishing remote connection to {node.server_name} ({node.ip})")
            connection = RemoteConnection(
                protocol=config.remote_protocol,
                username=config.remote_user,
                address=node.ip,
                port=config.remote_port,
                url=f"{config.remote_protocol}://{config.remote_user}@{node.ip}:{config.remote_port}",
            )
            self._stamp(node, NodeOperation.REMOTE, self.clock())

        self.bus.publish()
        return OperationResult(
            node_id=node_id,
            operation=NodeOperation.REMOTE,
            success=True,
            message=f"Remote connection to '{node_id}' ready",
            connection=connection,
        )

    def get_details(self, node_id: str) -> Optional[NodeRecord]:
        """Snapshot copy of one record, None when the node is unknown."""
        return self.store.snapshot(node_id)

    def bulk_operation(
        self, node_ids: Iterable[str], operation: Union[BulkOperation, str]
    ) -> BulkOperationResult:
        operation = BulkOperation(operation)
        handler = self.freeze if operation == BulkOperation.FREEZE else self.restart
        outcome = BulkOperationResult(operation=operation)

        for node_id in node_ids:
            try:
                result = handler(node_id)
            except Exception as e:
                logger.error(f"Bulk {operation.value} failed for '{node_id}': {e}", exc_info=True)
                result = OperationResult(
                    node_id=node_id,
                    operation=NodeOperation(operation.value),
                    success=False,
                    message=str(e),
                )
            outcome.results.append(result)
            if result.success:
                outcome.succeeded.add(node_id)
            else:
                outcome.failed.add(node_id)

        logger.info(
            f"Bulk {operation.value} completed: {len(outcome.succeeded)} success, {len(outcome.failed)} failed"
        )
        return outcome
