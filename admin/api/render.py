"""
Render node relay API

Registration sink and pass-through to render node agents, reached by private
IP inside the VPC.

Endpoints:
- POST /api/register: render node announces its private address
- GET /api/nodes: registered addresses
- POST /api/heartbeat: render node reports liveness by address
- GET /api/monitor?ip=: relay the node's metrics
- POST /api/start, /api/stop: relay control commands
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from admin.address_book import AddressBook
from admin.api.deps import get_address_book, get_registry, get_render_client
from admin.registry import NodeRegistry
from admin.render_client import RenderNodeClient
from shared.network import InvalidAddressError, validate_private_ipv4

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["render"])

INVALID_ADDRESS_DETAIL = "Invalid or missing Render Node private IP address."


class AddressRequest(BaseModel):
    ip: str = ""


def _require_private_ip(ip: str) -> str:
    try:
        return validate_private_ipv4(ip)
    except InvalidAddressError as e:
        logger.warning(f"Rejected address '{ip}': {e}")
        raise HTTPException(status_code=400, detail=INVALID_ADDRESS_DETAIL)


@router.post("/register")
def register_render_node(request: AddressRequest, address_book: AddressBook = Depends(get_address_book)):
    ip = _require_private_ip(request.ip)
    is_new = address_book.register(ip)
    return {
        "message": "Render Node registered successfully.",
        "ip": ip,
        "status": "registered" if is_new else "updated",
    }


@router.get("/nodes")
def list_registered_nodes(address_book: AddressBook = Depends(get_address_book)):
    return {"nodes": address_book.addresses()}


@router.post("/heartbeat")
def render_node_heartbeat(request: AddressRequest, registry: NodeRegistry = Depends(get_registry)):
    ip = _require_private_ip(request.ip)
    node = registry.find_by_address(ip)
    if node is None or not registry.record_heartbeat(node.id):
        raise HTTPException(status_code=404, detail=f"No render node discovered at {ip} yet")
    return {"status": "ok", "node_id": node.id}


@router.get("/monitor")
def monitor_render_node(ip: str = Query(default=""), client: RenderNodeClient = Depends(get_render_client)):
    ip = _require_private_ip(ip)
    ok, payload = client.fetch_metrics(ip)
    if not ok:
        return JSONResponse(status_code=502, content=payload)
    return payload


def _relay_command(ip: str, command: str, client: RenderNodeClient):
    ip = _require_private_ip(ip)
    ok, _, error = client.send_command(ip, command)
    if not ok:
        raise HTTPException(status_code=502, detail=error or f"Failed to {command} Render Node at {ip}.")
    past = "started" if command == "start" else "stopped"
    return {"message": f"Render Node at {ip} {past} successfully."}


@router.post("/start")
def start_render_node(request: AddressRequest, client: RenderNodeClient = Depends(get_render_client)):
    return _relay_command(request.ip, "start", client)


@router.post("/stop")
def stop_render_node(request: AddressRequest, client: RenderNodeClient = Depends(get_render_client)):
    return _relay_command(request.ip, "stop", client)
