"""
Runtime objects shared by the admin API routers.

Injected by service.py on startup (and by tests) through set_runtime().
"""

from typing import Optional

from fastapi import HTTPException

from admin.address_book import AddressBook
from admin.registry import NodeRegistry
from admin.render_client import RenderNodeClient

_registry: Optional[NodeRegistry] = None
_address_book: Optional[AddressBook] = None
_render_client: Optional[RenderNodeClient] = None


def set_runtime(registry: NodeRegistry, address_book: AddressBook, render_client: RenderNodeClient):
    """Set runtime references (called by service.py)"""
    global _registry, _address_book, _render_client
    _registry = registry
    _address_book = address_book
    _render_client = render_client


def clear_runtime():
    global _registry, _address_book, _render_client
    _registry = None
    _address_book = None
    _render_client = None


def get_registry() -> NodeRegistry:
    if _registry is None:
        raise HTTPException(status_code=503, detail="Node registry not initialized")
    return _registry


def get_address_book() -> AddressBook:
    if _address_book is None:
        raise HTTPException(status_code=503, detail="Address book not initialized")
    return _address_book


def get_render_client() -> RenderNodeClient:
    if _render_client is None:
        raise HTTPException(status_code=503, detail="Render node client not initialized")
    return _render_client
