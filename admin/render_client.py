"""
HTTP relay from the admin node to render node agents.

Each render node serves GET /metrics and POST /start|/stop on the render node
port. Failures are reported as data ({"status": "unreachable", ...} or an
(ok, payload, error) tuple), never raised to the caller.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from admin.address_book import AddressBook
from admin.models import DiscoveryCandidate

logger = logging.getLogger(__name__)

RENDER_COMMANDS = ("start", "stop")


class RenderNodeClient:
    """
    Relay to render node agents.

    port_source, when given, is read on every request so a runtime change of
    the render node port reaches the next call. requests.Session is not
    thread-safe, so every calling thread gets its own session from
    session_factory.
    """

    def __init__(
        self,
        port: int = 4000,
        timeout_seconds: float = 3.0,
        session_factory: Callable[[], requests.Session] = requests.Session,
        port_source: Optional[Callable[[], int]] = None,
    ):
        self._port = int(port)
        self._port_source = port_source
        self.timeout_seconds = float(timeout_seconds)
        self._session_factory = session_factory
        self._local = threading.local()
        self._sessions: List[requests.Session] = []
        self._sessions_lock = threading.Lock()

    @property
    def port(self) -> int:
        if self._port_source is not None:
            return int(self._port_source())
        return self._port

    def base_url(self, ip: str) -> str:
        return f"http://{ip}:{self.port}"

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    def fetch_metrics(self, ip: str) -> Tuple[bool, Dict[str, Any]]:
        """
        GET the node's own metrics endpoint.

        Returns:
            (True, metrics body) or (False, {"status": "unreachable", "error": ...})
        """
        url = f"{self.base_url(ip)}/metrics"
        try:
            response = self._session().get(url, timeout=self.timeout_seconds)
        except requests.exceptions.RequestException as e:
            logger.warning(f"Metrics fetch from {ip} failed: {e}")
            return False, {"status": "unreachable", "error": f"Failed to fetch metrics from Render Node at {ip}: {e}"}

        if response.status_code != 200:
            return False, {
                "status": "unreachable",
                "error": f"Render Node at {ip} answered HTTP {response.status_code}",
            }
        try:
            payload = response.json()
        except ValueError:
            return False, {"status": "unreachable", "error": f"Render Node at {ip} returned a non-JSON body"}
        if not isinstance(payload, dict):
            return False, {"status": "unreachable", "error": f"Render Node at {ip} returned unexpected metrics"}
        return True, payload

    def send_command(self, ip: str, command: str) -> Tuple[bool, Any, Optional[str]]:
        if command not in RENDER_COMMANDS:
            raise ValueError(f"Unknown render node command '{command}'")

        url = f"{self.base_url(ip)}/{command}"
        try:
            response = self._session().post(url, json={}, timeout=self.timeout_seconds)
        except requests.exceptions.RequestException as e:
            logger.warning(f"{command} command to {ip} failed: {e}")
            return False, None, f"Failed to {command} Render Node at {ip}: {e}"

        try:
            payload = response.json()
        except ValueError:
            payload = {"raw": response.text}

        if 200 <= response.status_code < 300:
            logger.info(f"Render node {ip} accepted {command}")
            return True, payload, None

        if isinstance(payload, dict):
            error = payload.get("detail") or payload.get("error") or payload.get("raw")
        else:
            error = str(payload)
        return False, payload, f"HTTP {response.status_code}: {error}"

    def close(self) -> None:
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()


class RegisteredAddressProbe:
    """
    Discovery probe over the addresses in the registration sink.

    An address is reachable when its metrics endpoint answers with JSON; the
    hostname and service list reported there name the discovered node.
    """

    def __init__(self, address_book: AddressBook, client: RenderNodeClient):
        self.address_book = address_book
        self.client = client

    def __call__(self) -> List[DiscoveryCandidate]:
        candidates = []
        for ip in self.address_book.addresses():
            started = time.monotonic()
            ok, payload = self.client.fetch_metrics(ip)
            elapsed_ms = (time.monotonic() - started) * 1000.0
            if not ok:
                candidates.append(DiscoveryCandidate(ip=ip, reachable=False, error=payload.get("error")))
                continue

            services = payload.get("services")
            candidates.append(DiscoveryCandidate(
                ip=ip,
                hostname=payload.get("hostname") or None,
                services=[str(s) for s in services] if isinstance(services, list) else [],
                reachable=True,
                response_time_ms=round(elapsed_ms, 1),
            ))
        return candidates
