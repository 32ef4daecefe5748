from __future__ import annotations

import ipaddress
from dataclasses import dataclass, fields, replace
from typing import Any

from shared.config import RENDER_NODE_PORT, float_env, int_env, str_env
from shared.network import InvalidAddressError, validate_private_ipv4

ADMIN_BIND_HOST = str_env("RENDERFARM_ADMIN_BIND_HOST", "0.0.0.0")
RELAY_TIMEOUT_SECONDS = float_env("RENDERFARM_RELAY_TIMEOUT_SECONDS", 3.0)


@dataclass
class DetectionConfig:
    """Runtime parameters of the node liveness registry."""

    admin_node_ip: str = "10.6.0.10"
    vpc_cidr: str = "10.6.0.0/24"
    vpc_id: str = "vpc-render-cluster"
    render_node_port: int = RENDER_NODE_PORT
    discovery_interval_seconds: float = 10.0
    heartbeat_check_interval_seconds: float = 2.0
    retention_window_seconds: float = 10.0
    eviction_window_seconds: float = 300.0
    restart_delay_seconds: float = 5.0
    default_instance_max: int = 4
    remote_protocol: str = "ssh"
    remote_user: str = "admin"
    remote_port: int = 22

    @classmethod
    def from_env(cls) -> "DetectionConfig":
        return cls(
            admin_node_ip=str_env("RENDERFARM_ADMIN_NODE_IP", "10.6.0.10"),
            vpc_cidr=str_env("RENDERFARM_VPC_CIDR", "10.6.0.0/24"),
            vpc_id=str_env("RENDERFARM_VPC_ID", "vpc-render-cluster"),
            render_node_port=RENDER_NODE_PORT,
            discovery_interval_seconds=float_env("RENDERFARM_DISCOVERY_INTERVAL_SECONDS", 10.0),
            heartbeat_check_interval_seconds=float_env("RENDERFARM_HEARTBEAT_CHECK_INTERVAL_SECONDS", 2.0),
            retention_window_seconds=float_env("RENDERFARM_RETENTION_WINDOW_SECONDS", 10.0),
            eviction_window_seconds=float_env("RENDERFARM_EVICTION_WINDOW_SECONDS", 300.0),
            restart_delay_seconds=float_env("RENDERFARM_RESTART_DELAY_SECONDS", 5.0),
            default_instance_max=int_env("RENDERFARM_DEFAULT_INSTANCE_MAX", 4),
        )

    def updated(self, **changes: Any) -> "DetectionConfig":
        """Copy with the given fields replaced; unknown or None values are ignored."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown configuration fields: {unknown}")
        updated = replace(self, **{k: v for k, v in changes.items() if v is not None})
        updated.validate()
        return updated

    def validate(self) -> None:
        try:
            validate_private_ipv4(self.admin_node_ip)
        except InvalidAddressError as e:
            raise ValueError(f"admin_node_ip: {e}") from e

        try:
            ipaddress.IPv4Network(self.vpc_cidr, strict=False)
        except ValueError as e:
            raise ValueError(f"vpc_cidr '{self.vpc_cidr}' is not a valid IPv4 network") from e

        if int(self.render_node_port) < 1 or int(self.render_node_port) > 65535:
            raise ValueError("render_node_port must be in range 1..65535")
        if self.discovery_interval_seconds <= 0 or self.heartbeat_check_interval_seconds <= 0:
            raise ValueError("scan intervals must be positive")
        if self.retention_window_seconds <= 0:
            raise ValueError("retention_window_seconds must be positive")
        if self.eviction_window_seconds < self.retention_window_seconds:
            raise ValueError("eviction_window_seconds must not be shorter than retention_window_seconds")
        if self.restart_delay_seconds < 0:
            raise ValueError("restart_delay_seconds must not be negative")
        if self.default_instance_max < 0:
            raise ValueError("default_instance_max must not be negative")
