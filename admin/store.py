"""
In-memory node record store.

Pure data holder keyed by node id. Mutation is owned by the heartbeat monitor,
the discovery feed and the command dispatcher, which all hold the registry
lock around their read-modify-write sequences; the store takes the same lock
so snapshot readers never observe a half-applied update.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from admin.models import NodeRecord


class NodeStore:

    def __init__(self, lock: Optional[threading.RLock] = None):
        self._lock = lock or threading.RLock()
        self._records: Dict[str, NodeRecord] = {}

    def upsert(self, record: NodeRecord) -> None:
        with self._lock:
            self._records[record.id] = record

    def get(self, node_id: str) -> Optional[NodeRecord]:
        """Live record for owners that mutate it; use snapshot() for reads."""
        with self._lock:
            return self._records.get(node_id)

    def snapshot(self, node_id: str) -> Optional[NodeRecord]:
        with self._lock:
            record = self._records.get(node_id)
            return record.model_copy(deep=True) if record is not None else None

    def list(self) -> List[NodeRecord]:
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]

    def remove(self, node_id: str) -> Optional[NodeRecord]:
        with self._lock:
            return self._records.pop(node_id, None)

    def find_by_address(self, ip: str) -> Optional[NodeRecord]:
        with self._lock:
            for record in self._records.values():
                if record.ip == ip:
                    return record
            return None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._records.keys())

    def records(self) -> Iterator[NodeRecord]:
        """Live records; callers must hold the registry lock while iterating."""
        return iter(list(self._records.values()))

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class HeartbeatTable:
    """Node id -> last network-level contact, kept apart from declared status."""

    def __init__(self, lock: Optional[threading.RLock] = None):
        self._lock = lock or threading.RLock()
        self._contacts: Dict[str, datetime] = {}

    def record(self, node_id: str, when: datetime) -> None:
        with self._lock:
            self._contacts[node_id] = when

    def last_contact(self, node_id: str, default: Optional[datetime] = None) -> Optional[datetime]:
        with self._lock:
            return self._contacts.get(node_id, default)

    def forget(self, node_id: str) -> None:
        with self._lock:
            self._contacts.pop(node_id, None)

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._contacts
