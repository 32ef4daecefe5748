"""
Address helpers shared by the admin node and render nodes.

Registration and relay endpoints only accept private-range IPv4 literals
(10.0.0.0/8, 172.16.0.0/12, 192.168.0.0/16). Anything else is rejected at the
boundary with InvalidAddressError before it reaches the registry.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Optional

import psutil

logger = logging.getLogger(__name__)

PRIVATE_NETWORKS = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
)


class InvalidAddressError(ValueError):
    """Raised when an address is not a private-range IPv4 literal."""


def parse_ipv4(value: object) -> Optional[ipaddress.IPv4Address]:
    text = str(value or "").strip()
    if not text:
        return None
    try:
        return ipaddress.IPv4Address(text)
    except ValueError:
        return None


def is_ipv4(value: object) -> bool:
    return parse_ipv4(value) is not None


def is_private_ipv4(value: object) -> bool:
    address = parse_ipv4(value)
    if address is None:
        return False
    return any(address in network for network in PRIVATE_NETWORKS)


def validate_private_ipv4(value: object) -> str:
    """Return the normalized address or raise InvalidAddressError."""
    address = parse_ipv4(value)
    if address is None:
        raise InvalidAddressError(f"'{value}' is not a valid IPv4 address")
    if not any(address in network for network in PRIVATE_NETWORKS):
        raise InvalidAddressError(f"'{value}' is not a private-range IPv4 address")
    return str(address)


def last_octet(ip: str) -> int:
    try:
        return int(str(ip).strip().split(".")[-1])
    except (TypeError, ValueError):
        return 0


def detect_private_ip(default: str = "0.0.0.0") -> str:
    """First non-loopback private IPv4 bound to a local interface."""
    try:
        interfaces = psutil.net_if_addrs()
    except Exception as e:
        logger.warning(f"Failed to enumerate network interfaces: {e}")
        return default

    for name, addresses in interfaces.items():
        for addr in addresses:
            if addr.family != socket.AF_INET:
                continue
            if is_private_ipv4(addr.address):
                logger.debug(f"Using private address {addr.address} from interface {name}")
                return addr.address
    return default
