"""
Network utility functions for address and MAC validation.

This module provides helper functions shared by the neighbor table reader,
the vendor lookup and the exporters.
"""

import ipaddress
import re
from typing import Optional

_MAC_PATTERN = re.compile(r"^([0-9A-Fa-f]{1,2}[:-]){5}([0-9A-Fa-f]{1,2})$")
_BARE_MAC_PATTERN = re.compile(r"^[0-9A-Fa-f]{12}$")
_DOTTED_MAC_PATTERN = re.compile(r"^([0-9A-Fa-f]{4}\.){2}[0-9A-Fa-f]{4}$")

EMPTY_MAC = "00:00:00:00:00:00"
BROADCAST_MAC = "FF:FF:FF:FF:FF:FF"


def is_valid_ip(ip_address: str) -> bool:
    """
    Check if a string represents a valid IPv4 address.

    Args:
        ip_address: String to validate as IPv4 address

    Returns:
        bool: True if valid IPv4 address, False otherwise
    """
    try:
        ipaddress.IPv4Address(ip_address)
        return True
    except ipaddress.AddressValueError:
        return False


def normalize_mac(mac: str) -> Optional[str]:
    """
    Normalize a MAC address to uppercase colon-separated pairs.

    Accepts colon or hyphen separated forms (single-digit groups as printed
    by BSD arp are zero padded), bare 12-digit hex and Cisco dotted form.

    Args:
        mac: MAC address in any supported notation

    Returns:
        Optional[str]: "AA:BB:CC:DD:EE:FF", or None if the value is not a MAC
    """
    if not mac:
        return None

    mac = mac.strip()
    if _MAC_PATTERN.match(mac):
        groups = re.split(r"[:-]", mac)
        return ":".join(group.zfill(2) for group in groups).upper()

    if _DOTTED_MAC_PATTERN.match(mac):
        mac = mac.replace(".", "")
    if _BARE_MAC_PATTERN.match(mac):
        return ":".join(mac[i:i + 2] for i in range(0, 12, 2)).upper()

    return None


def is_valid_mac(mac: str) -> bool:
    """Check if string is a MAC address in a supported notation."""
    return normalize_mac(mac) is not None


def is_usable_mac(mac: Optional[str]) -> bool:
    """A normalized MAC that identifies a real interface (not empty or broadcast)."""
    return bool(mac) and mac not in (EMPTY_MAC, BROADCAST_MAC)


def oui_of(mac: str) -> Optional[str]:
    """
    Extract the OUI (first three octets) from a MAC address.

    Returns:
        Optional[str]: "AA:BB:CC", or None if mac is not a valid MAC
    """
    normalized = normalize_mac(mac)
    if normalized is None:
        return None
    return normalized[:8]
