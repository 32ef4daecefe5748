"""
Admin Client

Shared utility for render nodes to register with the admin node and report
liveness, and for dashboards or scripts to read the node registry.
"""

import logging
from typing import Dict, List

import requests

logger = logging.getLogger(__name__)


class AdminClient:
    """
    Client for the admin node HTTP API.

    Usage:
        client = AdminClient(admin_url="http://10.6.0.10:3000")

        # Render node boot
        client.register("10.6.0.11")
        client.heartbeat("10.6.0.11")

        # Dashboards
        nodes = client.list_nodes()
        status = client.vpc_status()
    """

    def __init__(self, admin_url: str):
        """
        Initialize admin client.

        Args:
            admin_url: Admin node base URL (e.g., 'http://10.6.0.10:3000')
        """
        self.admin_url = admin_url.rstrip("/")

    def register(self, ip: str, timeout: int = 10) -> Dict:
        """
        Register this render node's private address with the admin node.

        Returns:
            Registration response dict with message and status

        Raises:
            requests.RequestException: On network errors
            ValueError: When the admin node rejects the address
        """
        url = f"{self.admin_url}/api/register"

        try:
            response = requests.post(url, json={"ip": ip}, timeout=timeout)
            response.raise_for_status()
            result = response.json()
            logger.info(f"Successfully registered with Admin Node: {result.get('message')}")
            return result
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 400:
                logger.error(f"Admin node rejected address {ip}")
                raise ValueError(f"Registration failed: address {ip} rejected by admin node")
            logger.error(f"Registration failed: {e}")
            raise
        except requests.RequestException as e:
            logger.error(f"Failed to register with Admin Node: {e}")
            raise

    def heartbeat(self, ip: str, timeout: int = 5) -> Dict:
        """
        Report liveness by address.

        The admin node answers 404 until its discovery feed has turned the
        registered address into a node record.
        """
        url = f"{self.admin_url}/api/heartbeat"

        try:
            response = requests.post(url, json={"ip": ip}, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.warning(f"Heartbeat failed: {e}")
            raise

    def list_nodes(self, timeout: int = 10) -> List[Dict]:
        url = f"{self.admin_url}/nodes"

        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch nodes: {e}")
            raise

    def vpc_status(self, timeout: int = 10) -> Dict:
        url = f"{self.admin_url}/vpc/status"

        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch VPC status: {e}")
            raise
