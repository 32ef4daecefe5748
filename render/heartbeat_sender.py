"""
Render Node Heartbeat Sender

Background thread that reports liveness to the admin node.
Runs every 5 seconds by default, well inside the admin retention window.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional

import requests

from shared.admin_client import AdminClient

logger = logging.getLogger(__name__)


class HeartbeatSender:
    """
    Sends periodic heartbeats to the admin node.
    """

    def __init__(self, client: AdminClient, node_ip: str, interval_seconds: float = 5):
        """
        Initialize heartbeat sender.

        Args:
            client: Admin API client
            node_ip: This render node's private address
            interval_seconds: Heartbeat interval (default: 5 seconds)
        """
        self.client = client
        self.node_ip = node_ip
        self.interval_seconds = float(interval_seconds)

        self.running = False
        self.thread: Optional[threading.Thread] = None
        self.last_sent_at: Optional[datetime] = None
        self._stop_event = threading.Event()

        logger.info(f"Heartbeat sender initialized: admin={client.admin_url}, node={node_ip}, interval={interval_seconds}s")

    def start(self):
        """Start heartbeat sender thread"""
        if self.running:
            logger.warning("Heartbeat sender already running")
            return

        self.running = True
        self._stop_event = threading.Event()
        self.thread = threading.Thread(target=self._run, args=(self._stop_event,), daemon=True)
        self.thread.start()

        logger.info("Heartbeat sender started")

    def stop(self):
        """Stop heartbeat sender thread"""
        self.running = False
        self._stop_event.set()
        if self.thread:
            self.thread.join(timeout=5)

        logger.info("Heartbeat sender stopped")

    def _run(self, stop_event: threading.Event):
        """Main heartbeat loop, bound to the stop event of the start() that launched it"""
        while not stop_event.is_set():
            self.send_once()
            if stop_event.wait(self.interval_seconds):
                break

    def send_once(self) -> bool:
        """Send single heartbeat to the admin node"""
        try:
            self.client.heartbeat(self.node_ip)
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.debug(f"Heartbeat not accepted yet: status={status}")
            return False
        except requests.RequestException as e:
            logger.error(f"Heartbeat request error: {e}")
            return False

        self.last_sent_at = datetime.now(timezone.utc)
        logger.debug(f"Heartbeat sent successfully: {self.node_ip}")
        return True
