"""
Boot-time sanity checks for the two process roles.

The admin API and the render node agent share a VPC and often a test machine,
so a port clash or a malformed admin URL is caught here before uvicorn binds.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse

from shared.config import ADMIN_API_PORT, RENDER_NODE_PORT
from shared.network import is_ipv4

ROLES = ("ADMIN", "RENDER")


@dataclass
class StartupProfile:
    role: str
    host: str
    port: int

    def check_binding(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown role '{self.role}', expected one of {ROLES}")
        if not str(self.host or "").strip():
            raise ValueError(f"{self.role} bind host is required")
        _check_port(self.port, f"{self.role} port")


def _check_port(port: int, label: str) -> None:
    if not 1 <= int(port) <= 65535:
        raise ValueError(f"{label} {port} outside 1..65535")


def validate_admin_profile(profile: StartupProfile, render_node_port: int = RENDER_NODE_PORT) -> None:
    profile.check_binding()
    _check_port(render_node_port, "render node port")
    if int(profile.port) == int(render_node_port):
        raise ValueError(f"Admin API port {profile.port} conflicts with render node port {render_node_port}")


def validate_render_profile(profile: StartupProfile, admin_base_url: str) -> None:
    """The agent port must differ from the admin API and admin_base_url must name an IPv4 host."""
    profile.check_binding()
    if int(profile.port) == int(ADMIN_API_PORT):
        raise ValueError(f"Render node port {profile.port} conflicts with admin API port {ADMIN_API_PORT}")

    parsed = urlparse(str(admin_base_url or "").strip())
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ValueError(f"Admin URL '{admin_base_url}' is not a valid http(s) URL")
    if not is_ipv4(parsed.hostname):
        raise ValueError(f"Admin URL '{admin_base_url}' must address the admin node by IPv4")
