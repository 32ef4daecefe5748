"""
Render Node Agent API

HTTP/JSON API the admin node relays to.
Listens on the render node port (4000).

The admin node uses this API to:
- Read current render metrics (also its reachability probe)
- Start and stop the render process
"""

import logging
import random
import socket
import threading
from typing import List, Optional

import psutil
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from shared.network import detect_private_ip

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = ["render-service", "gpu-monitor"]

app = FastAPI(title="Render Node Agent", version="1.0.0")


class RenderAgentState:
    """Render process flag plus the identity reported to the admin node"""

    def __init__(
        self,
        node_ip: Optional[str] = None,
        hostname: Optional[str] = None,
        services: Optional[List[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.node_ip = node_ip or detect_private_ip()
        self.hostname = hostname or socket.gethostname()
        self.services = list(services or DEFAULT_SERVICES)
        self.rng = rng or random.Random()
        self.is_running = False
        self._lock = threading.Lock()

    def start(self) -> bool:
        with self._lock:
            if self.is_running:
                return False
            self.is_running = True
            return True

    def stop(self) -> bool:
        with self._lock:
            if not self.is_running:
                return False
            self.is_running = False
            return True


class MetricsResponse(BaseModel):
    """Render node metrics"""
    render_node_ip: str
    hostname: str
    cpu_usage: float
    gpu_usage: float
    memory_utilization: float
    is_running: bool
    services: List[str]


_state: Optional[RenderAgentState] = None


def get_state() -> RenderAgentState:
    global _state
    if _state is None:
        _state = RenderAgentState()
    return _state


def set_state(state: RenderAgentState) -> None:
    """Replace agent state (called by service.py and tests)"""
    global _state
    _state = state


def memory_utilization() -> float:
    return float(psutil.virtual_memory().percent)


@app.get("/metrics", response_model=MetricsResponse)
def get_metrics():
    state = get_state()
    try:
        return MetricsResponse(
            render_node_ip=state.node_ip,
            hostname=state.hostname,
            cpu_usage=round(state.rng.random() * 80 + 10, 1),  # simulated 10-90%
            gpu_usage=round(state.rng.random() * 65 + 5, 1),  # simulated 5-70%
            memory_utilization=round(memory_utilization(), 1),
            is_running=state.is_running,
            services=state.services,
        )
    except Exception as e:
        logger.error(f"Failed to collect metrics: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to retrieve metrics.")


@app.post("/start")
def start_rendering():
    if not get_state().start():
        raise HTTPException(status_code=400, detail="Render Node is already running.")
    logger.info("Render process started")
    return {"message": "Render Node started successfully."}


@app.post("/stop")
def stop_rendering():
    if not get_state().stop():
        raise HTTPException(status_code=400, detail="Render Node is not running.")
    logger.info("Render process stopped")
    return {"message": "Render Node stopped successfully."}
