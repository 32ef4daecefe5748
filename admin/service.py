"""
Admin Service Entrypoint

FastAPI application for the render farm admin node.
Includes all API routers, the node liveness registry and startup wiring.
"""
from fastapi import FastAPI
import logging
from typing import Callable

import requests

from admin.api import deps, nodes, render, vpc
from admin.address_book import AddressBook
from admin.config import ADMIN_BIND_HOST, RELAY_TIMEOUT_SECONDS, DetectionConfig
from admin.registry import NodeRegistry
from admin.render_client import RegisteredAddressProbe, RenderNodeClient
from shared.config import ADMIN_API_PORT
from shared.startup_profile import StartupProfile, validate_admin_profile

logger = logging.getLogger(__name__)

app = FastAPI(title="Render Farm Admin Service")

app.include_router(render.router)
app.include_router(nodes.router)
app.include_router(vpc.router)

# Global runtime, built on startup
node_registry = None
relay_clients = []


def build_runtime(config: DetectionConfig, session_factory: Callable[[], requests.Session] = requests.Session):
    """
    Wire address book, relay clients and registry for one admin node.

    Discovery and the HTTP relay each get their own RenderNodeClient. Both read
    the render node port from the registry's live config on every request.

    Returns:
        (registry, address_book, relay_client, probe_client)
    """
    address_book = AddressBook()
    registry = None

    def render_node_port() -> int:
        return registry.get_config().render_node_port

    relay_client = RenderNodeClient(
        timeout_seconds=RELAY_TIMEOUT_SECONDS, session_factory=session_factory, port_source=render_node_port,
    )
    probe_client = RenderNodeClient(
        timeout_seconds=RELAY_TIMEOUT_SECONDS, session_factory=session_factory, port_source=render_node_port,
    )
    registry = NodeRegistry(config=config, probe=RegisteredAddressProbe(address_book, probe_client))
    return registry, address_book, relay_client, probe_client


@app.on_event("startup")
def startup_init():
    """Build the node registry and start its workers"""
    global node_registry, relay_clients

    config = DetectionConfig.from_env()
    validate_admin_profile(
        StartupProfile(role="ADMIN", host=ADMIN_BIND_HOST, port=ADMIN_API_PORT),
        render_node_port=config.render_node_port,
    )

    registry, address_book, relay_client, probe_client = build_runtime(config)
    deps.set_runtime(registry, address_book, relay_client)

    logger.info("Starting node registry...")
    registry.start()
    node_registry = registry
    relay_clients = [relay_client, probe_client]

    logger.info("Admin service startup complete")


@app.on_event("shutdown")
def shutdown_cleanup():
    """Stop registry workers and close relay sessions on shutdown"""
    global node_registry, relay_clients

    if node_registry:
        logger.info("Stopping node registry...")
        node_registry.stop()

    for client in relay_clients:
        client.close()
    relay_clients = []

    logger.info("Admin service shutdown complete")


@app.get("/")
def root():
    return {
        "service": "admin",
        "message": "Render farm admin node running",
    }
