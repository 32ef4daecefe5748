"""
Registration sink for render nodes.

Render nodes POST their private address to /api/register on boot. The admin
node only remembers the set of addresses; turning an address into a node
record is the discovery feed's job.
"""

from __future__ import annotations

import logging
import threading
from typing import List, Set

from shared.network import validate_private_ipv4

logger = logging.getLogger(__name__)


class AddressBook:

    def __init__(self):
        self._addresses: Set[str] = set()
        self._lock = threading.Lock()

    def register(self, ip: str) -> bool:
        """
        Add a render node address.

        Raises:
            InvalidAddressError: if ip is not a private-range IPv4 literal

        Returns:
            True if the address was not registered before
        """
        address = validate_private_ipv4(ip)
        with self._lock:
            is_new = address not in self._addresses
            self._addresses.add(address)
        if is_new:
            logger.info(f"Render node registered: {address}")
        return is_new

    def unregister(self, ip: str) -> bool:
        with self._lock:
            if ip not in self._addresses:
                return False
            self._addresses.discard(ip)
        logger.info(f"Render node unregistered: {ip}")
        return True

    def addresses(self) -> List[str]:
        with self._lock:
            return sorted(self._addresses)

    def __contains__(self, ip: object) -> bool:
        with self._lock:
            return ip in self._addresses

    def __len__(self) -> int:
        with self._lock:
            return len(self._addresses)
