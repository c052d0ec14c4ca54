"""
CIDR range expansion for the Network Scanner.

Turns "A.B.C.D/N" into the ascending sequence of usable host addresses,
excluding the network and broadcast addresses. Prefixes /31 and /32 have no
usable host addresses under this rule and expand to an empty sequence.
"""

import ipaddress
import re
from typing import Iterator, List, Union

from .data_models import Address, SubnetSpec
from ..utils.error_handler import ParseError

_CIDR_PATTERN = re.compile(r"^([^/\s]+)/([^/\s]*)$")
# ASCII digits only
_PREFIX_PATTERN = re.compile(r"[0-9]+")
_OCTET_PATTERN = re.compile(r"[0-9]{1,3}")

SubnetLike = Union[str, SubnetSpec]


def parse_subnet(subnet: str) -> SubnetSpec:
    """
    Parse a subnet in CIDR notation.

    Args:
        subnet: Subnet such as "192.168.1.0/24"

    Returns:
        SubnetSpec: Parsed base address and prefix length

    Raises:
        ParseError: If the slash is missing, the prefix is not an integer in
            [0, 32], or the address does not have four octets in [0, 255]
    """
    if not isinstance(subnet, str):
        raise ParseError(f"Subnet must be a string, got {type(subnet).__name__}")

    match = _CIDR_PATTERN.match(subnet.strip())
    if not match:
        raise ParseError(f"Invalid subnet '{subnet}': expected A.B.C.D/N")

    address_text, prefix_text = match.groups()

    if not _PREFIX_PATTERN.fullmatch(prefix_text):
        raise ParseError(f"Invalid prefix length '{prefix_text}' in '{subnet}'")
    prefix_length = int(prefix_text)
    if not 0 <= prefix_length <= 32:
        raise ParseError(f"Prefix length {prefix_length} out of range [0, 32] in '{subnet}'")

    octets = address_text.split(".")
    if len(octets) != 4:
        raise ParseError(f"Invalid address '{address_text}': expected four octets")

    value = 0
    for octet in octets:
        if not _OCTET_PATTERN.fullmatch(octet):
            raise ParseError(f"Invalid octet '{octet}' in '{address_text}'")
        number = int(octet)
        if number > 255:
            raise ParseError(f"Octet {number} out of range [0, 255] in '{address_text}'")
        value = (value << 8) | number

    return SubnetSpec(base_address=ipaddress.IPv4Address(value), prefix_length=prefix_length)


def _as_subnet_spec(subnet: SubnetLike) -> SubnetSpec:
    return subnet if isinstance(subnet, SubnetSpec) else parse_subnet(subnet)


def iter_hosts(subnet: SubnetLike) -> Iterator[Address]:
    """
    Lazily yield usable host addresses in ascending numeric order.

    Args:
        subnet: CIDR string or parsed SubnetSpec

    Raises:
        ParseError: If a string subnet cannot be parsed
    """
    subnet_spec = _as_subnet_spec(subnet)
    first = int(subnet_spec.network_address) + 1
    last = int(subnet_spec.broadcast_address) - 1
    for value in range(first, last + 1):
        yield ipaddress.IPv4Address(value)


def expand(subnet: SubnetLike) -> List[Address]:
    """
    Expand a subnet into the full list of usable host addresses.

    Args:
        subnet: CIDR string or parsed SubnetSpec

    Returns:
        List[Address]: Host addresses, ascending; empty for /31 and /32

    Raises:
        ParseError: If a string subnet cannot be parsed
    """
    return list(iter_hosts(subnet))


def host_count(subnet: SubnetLike) -> int:
    """Number of addresses expand() would return, without materializing them."""
    return _as_subnet_spec(subnet).host_count
