"""
Admin Node Registry API

Read access to the node liveness registry plus freeze / restart / remote
operations for dashboards.

Endpoints:
- GET /nodes: all known render nodes
- GET /nodes/{node_id}: one render node
- POST /nodes/{node_id}/freeze|restart|remote: node operations
- POST /nodes/{node_id}/heartbeat: record contact from a node
- POST /nodes/bulk: freeze or restart several nodes
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from admin.api.deps import get_registry
from admin.models import (
    BulkOperation,
    BulkOperationResult,
    NodeRecord,
    OperationError,
    OperationResult,
)
from admin.registry import NodeRegistry

router = APIRouter(prefix="/nodes", tags=["nodes"])


class BulkOperationRequest(BaseModel):
    node_ids: List[str] = Field(min_length=1)
    operation: BulkOperation


def _raise_for_failure(result: OperationResult) -> OperationResult:
    if result.success:
        return result
    if result.error == OperationError.NOT_FOUND:
        raise HTTPException(status_code=404, detail=result.message)
    if result.error == OperationError.NOT_PERMITTED:
        raise HTTPException(status_code=409, detail=result.message)
    raise HTTPException(status_code=500, detail=result.message or "Operation failed")


@router.get("", response_model=List[NodeRecord])
def list_nodes(registry: NodeRegistry = Depends(get_registry)):
    return registry.list_nodes()


@router.post("/bulk", response_model=BulkOperationResult)
def bulk_operation(request: BulkOperationRequest, registry: NodeRegistry = Depends(get_registry)):
    """
    Apply freeze or restart to every listed node.
    A failure on one node never stops the others.
    """
    return registry.commands.bulk_operation(request.node_ids, request.operation)


@router.get("/{node_id}", response_model=NodeRecord)
def get_node(node_id: str, registry: NodeRegistry = Depends(get_registry)):
    node = registry.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"Render node '{node_id}' not found")
    return node


@router.post("/{node_id}/freeze", response_model=OperationResult)
def freeze_node(node_id: str, registry: NodeRegistry = Depends(get_registry)):
    return _raise_for_failure(registry.commands.freeze(node_id))


@router.post("/{node_id}/restart", response_model=OperationResult)
def restart_node(node_id: str, registry: NodeRegistry = Depends(get_registry)):
    return _raise_for_failure(registry.commands.restart(node_id))


@router.post("/{node_id}/remote", response_model=OperationResult)
def connect_remote(node_id: str, registry: NodeRegistry = Depends(get_registry)):
    return _raise_for_failure(registry.commands.connect_remote(node_id))


@router.post("/{node_id}/heartbeat")
def node_heartbeat(node_id: str, registry: NodeRegistry = Depends(get_registry)):
    if not registry.record_heartbeat(node_id):
        raise HTTPException(status_code=404, detail=f"Render node '{node_id}' not found")
    return {"status": "ok", "node_id": node_id}
