"""
Render Node Service

Launcher for one render node agent.
Runs the agent API server (HTTP FastAPI, port 4000) plus one background worker:
- Heartbeat sender -> admin node (every 5s)

On boot the node resolves its own private address, registers it with the admin
node and only then starts heartbeating.

Usage:
    python -m render.service --admin-ip 10.6.0.10 --port 4000
"""

import argparse
import logging
import os
import sys
from typing import Callable, Optional

import requests
import uvicorn

from render import agent_app
from render.heartbeat_sender import HeartbeatSender
from shared.admin_client import AdminClient
from shared.config import ADMIN_API_PORT, LOG_FILE, LOG_LEVEL, RENDER_NODE_PORT
from shared.logging_config import setup_logging
from shared.network import InvalidAddressError, detect_private_ip, is_ipv4
from shared.startup_profile import StartupProfile, validate_render_profile

logger = logging.getLogger(__name__)


def resolve_admin_ip(
    cli_value: Optional[str],
    prompt: Callable[[str], str] = input,
) -> str:
    """
    Admin node address from --admin-ip, RENDERFARM_ADMIN_IP, or one prompt.

    Any IPv4 literal is accepted here so test setups outside a VPC still work.

    Raises:
        InvalidAddressError: if the resolved value is not an IPv4 address
    """
    value = (cli_value or os.getenv("RENDERFARM_ADMIN_IP") or "").strip()
    if not value:
        value = prompt("Enter Admin Node private IP address: ").strip()
    if not is_ipv4(value):
        raise InvalidAddressError(f"Invalid IPv4 address '{value}'")
    return value


class RenderNodeService:
    """
    Render node orchestrator.
    Manages lifecycle of the agent API server + heartbeat sender.
    """

    def __init__(
        self,
        admin_ip: str,
        admin_port: int = ADMIN_API_PORT,
        host: str = "0.0.0.0",
        port: int = RENDER_NODE_PORT,
        node_ip: Optional[str] = None,
        hostname: Optional[str] = None,
        heartbeat_interval: float = 5.0,
    ):
        self.admin_url = f"http://{admin_ip}:{admin_port}"
        self.host = host
        self.port = port

        validate_render_profile(StartupProfile(role="RENDER", host=host, port=port), self.admin_url)

        self.state = agent_app.RenderAgentState(node_ip=node_ip or detect_private_ip(), hostname=hostname)
        agent_app.set_state(self.state)

        self.client = AdminClient(self.admin_url)
        self.heartbeat_sender = HeartbeatSender(self.client, self.state.node_ip, interval_seconds=heartbeat_interval)

    def register(self) -> bool:
        try:
            self.client.register(self.state.node_ip)
            return True
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to register with Admin Node: {e}")
            return False

    def run(self):
        logger.info(f"Render Node server running on {self.host}:{self.port}")
        logger.info(f"Render Node IP: {self.state.node_ip}")

        self.register()
        self.heartbeat_sender.start()
        try:
            uvicorn.run(agent_app.app, host=self.host, port=self.port, log_level="info", access_log=False)
        finally:
            self.heartbeat_sender.stop()


def main():
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Render Farm Render Node Service")

    parser.add_argument(
        "--admin-ip",
        type=str,
        default=None,
        help="Admin node private IP (default: $RENDERFARM_ADMIN_IP, else prompt)"
    )
    parser.add_argument(
        "--admin-port",
        type=int,
        default=ADMIN_API_PORT,
        help=f"Admin API port (default: {ADMIN_API_PORT})"
    )
    parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Agent server host (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=RENDER_NODE_PORT,
        help=f"Agent server port (default: {RENDER_NODE_PORT})"
    )
    parser.add_argument(
        "--node-ip",
        type=str,
        default=None,
        help="Address to register (default: first private interface address)"
    )
    parser.add_argument(
        "--hostname",
        type=str,
        default=None,
        help="Hostname reported to the admin node (default: system hostname)"
    )
    parser.add_argument(
        "--heartbeat-interval",
        type=float,
        default=5.0,
        help="Seconds between heartbeats (default: 5)"
    )

    args = parser.parse_args()

    setup_logging("render", level=LOG_LEVEL, log_file=LOG_FILE)

    try:
        admin_ip = resolve_admin_ip(args.admin_ip)
    except InvalidAddressError as e:
        logger.error(f"{e}. Please restart and enter a valid IP.")
        return 1
    logger.info(f"Admin Node IP set to: {admin_ip}")

    service = RenderNodeService(
        admin_ip=admin_ip,
        admin_port=args.admin_port,
        host=args.host,
        port=args.port,
        node_ip=args.node_ip,
        hostname=args.hostname,
        heartbeat_interval=args.heartbeat_interval,
    )
    service.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
