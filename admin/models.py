"""
Admin node data models.

Render nodes live only in memory on the admin node; these pydantic models are
both the registry's records and the payloads served by the admin API.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class NodeStatus(str, enum.Enum):
    """Declared render node status, derived from the heartbeat table"""
    ONLINE = "Online"
    OFFLINE = "Offline"


class NodeOperation(str, enum.Enum):
    """Operations the command dispatcher can stamp on a record"""
    FREEZE = "freeze"
    RESTART = "restart"
    REMOTE = "remote"


class BulkOperation(str, enum.Enum):
    """Operations allowed in a bulk request"""
    FREEZE = "freeze"
    RESTART = "restart"


class OperationError(str, enum.Enum):
    NOT_FOUND = "not_found"  # Unknown node identifier
    NOT_PERMITTED = "not_permitted"  # Capability flag is false


# ============================================================================
# NODE RECORD
# ============================================================================

class GpuInfo(BaseModel):
    name: str
    memory: str
    temperature: str
    utilization: str


class SystemInfo(BaseModel):
    os: str
    cpu: str
    ram: str
    uptime: str


class ConnectionInfo(BaseModel):
    admin_node_ip: str
    connected_at: datetime
    heartbeat_interval: float  # seconds between heartbeat checks
    vpc_id: str
    subnet: str


class NodeOperations(BaseModel):
    can_freeze: bool = True
    can_restart: bool = True
    can_remote: bool = True
    last_operation: Optional[NodeOperation] = None
    operation_time: Optional[datetime] = None


class NodeMetrics(BaseModel):
    cpu_percent: float = Field(ge=0, le=100)
    gpu_percent: float = Field(ge=0, le=100)
    memory_percent: float = Field(ge=0, le=100)
    memory_used_gb: float = Field(ge=0)
    disk_percent: float = Field(ge=0, le=100)


class NodeRecord(BaseModel):
    """One render node as known to the admin node"""
    id: str = Field(min_length=1)
    server_name: str
    ip: str
    region_id: str
    instance_max: int = Field(ge=0)
    node_status: NodeStatus = NodeStatus.ONLINE
    last_seen: datetime
    metrics: NodeMetrics
    gpu_info: GpuInfo
    system_info: SystemInfo
    connection_info: ConnectionInfo
    operations: NodeOperations = Field(default_factory=NodeOperations)

    @property
    def is_online(self) -> bool:
        return self.node_status == NodeStatus.ONLINE


# ============================================================================
# DISCOVERY
# ============================================================================

class DiscoveryCandidate(BaseModel):
    """One address reported by an external probe"""
    ip: str
    hostname: Optional[str] = None
    services: list[str] = Field(default_factory=list)
    reachable: bool = False
    response_time_ms: Optional[float] = None
    error: Optional[str] = None  # Why the probe could not reach the node


# ============================================================================
# COMMAND RESULTS
# ============================================================================

class RemoteConnection(BaseModel):
    protocol: str
    username: str
    address: str
    port: int
    url: str


class OperationResult(BaseModel):
    node_id: str
    operation: NodeOperation
    success: bool
    error: Optional[OperationError] = None
    message: str = ""
    connection: Optional[RemoteConnection] = None


class BulkOperationResult(BaseModel):
    operation: BulkOperation
    succeeded: set[str] = Field(default_factory=set)
    failed: set[str] = Field(default_factory=set)
    results: list[OperationResult] = Field(default_factory=list)


class RegistryStatus(BaseModel):
    """VPC detection summary for dashboards"""
    admin_node_ip: str
    vpc_cidr: str
    vpc_id: str
    render_node_port: int
    total_nodes: int
    online_nodes: int
    offline_nodes: int
    is_scanning: bool
    is_running: bool
