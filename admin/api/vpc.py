"""
VPC detection status and runtime configuration.

Endpoints:
- GET /vpc/status: admin address, VPC range and node counts
- PUT /vpc/config: change detection parameters (restarts the workers)
- POST /vpc/refresh: manual discovery scan
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from admin.api.deps import get_registry
from admin.models import RegistryStatus
from admin.registry import NodeRegistry

router = APIRouter(prefix="/vpc", tags=["vpc"])


class VPCConfigUpdate(BaseModel):
    admin_node_ip: Optional[str] = None
    vpc_cidr: Optional[str] = None
    vpc_id: Optional[str] = None
    render_node_port: Optional[int] = Field(default=None, ge=1, le=65535)
    discovery_interval_seconds: Optional[float] = Field(default=None, gt=0)
    heartbeat_check_interval_seconds: Optional[float] = Field(default=None, gt=0)
    retention_window_seconds: Optional[float] = Field(default=None, gt=0)
    eviction_window_seconds: Optional[float] = Field(default=None, gt=0)
    restart_delay_seconds: Optional[float] = Field(default=None, ge=0)


@router.get("/status", response_model=RegistryStatus)
def vpc_status(registry: NodeRegistry = Depends(get_registry)):
    return registry.status()


@router.put("/config", response_model=RegistryStatus)
def update_vpc_config(update: VPCConfigUpdate, registry: NodeRegistry = Depends(get_registry)):
    try:
        registry.configure(**update.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return registry.status()


@router.post("/refresh")
def refresh_nodes(registry: NodeRegistry = Depends(get_registry)):
    scanned = registry.refresh()
    return {
        "status": "scanned" if scanned else "skipped",
        "total_nodes": len(registry.list_nodes()),
    }
