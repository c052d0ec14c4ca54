"""
Core data models and enums for the Network Scanner.

This module defines the data structures used throughout a scan: the parsed
subnet, one record per probed host, and the aggregate scan record returned
to the caller.
"""

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any, Union

Address = ipaddress.IPv4Address


class HostStatus(Enum):
    """Reachability status of a probed address."""
    UNKNOWN = "Unknown"
    ONLINE = "Online"
    OFFLINE = "Offline"


class DeviceType(Enum):
    """Enumeration of device types the heuristic classifier can assign."""
    ROUTER = "Router/Gateway"
    SWITCH = "Switch"
    PRINTER = "Printer"
    CAMERA = "Camera"
    VIRTUAL_MACHINE = "Virtual Machine"
    IOT = "IoT/Embedded"
    NETWORK_DEVICE = "Network Device"
    WEB_SERVER = "Web Server"
    LINUX = "Linux/Unix"
    WINDOWS = "Windows"
    COMPUTER = "Computer"
    UNKNOWN = "Unknown"


class ScanState(Enum):
    """Lifecycle states of a scan."""
    IDLE = "idle"
    EXPANDING = "expanding"
    PROBING = "probing"
    ENRICHING = "enriching"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def address_sort_key(address: Union[str, Address]) -> int:
    """
    Numeric sort key for an IPv4 address.

    Sorting on the string would place 192.168.1.10 before 192.168.1.9.

    Args:
        address: Dotted-quad string or IPv4Address

    Returns:
        int: The address as a 32-bit integer
    """
    return int(ipaddress.IPv4Address(str(address)))


def compare_addresses(a: Union[str, Address], b: Union[str, Address]) -> int:
    """Return a negative, zero or positive int as a is below, equal to or above b."""
    return address_sort_key(a) - address_sort_key(b)


@dataclass(frozen=True)
class SubnetSpec:
    """
    A parsed subnet in CIDR notation.

    Attributes:
        base_address: Address as written by the caller (host bits may be set)
        prefix_length: Prefix length between 0 and 32
    """
    base_address: Address
    prefix_length: int

    @property
    def netmask(self) -> int:
        return ~((1 << (32 - self.prefix_length)) - 1) & 0xFFFFFFFF

    @property
    def network_address(self) -> Address:
        return ipaddress.IPv4Address(int(self.base_address) & self.netmask)

    @property
    def broadcast_address(self) -> Address:
        return ipaddress.IPv4Address(
            int(self.network_address) | (~self.netmask & 0xFFFFFFFF)
        )

    @property
    def host_count(self) -> int:
        """Number of usable host addresses; 0 for /31 and /32."""
        return max(int(self.broadcast_address) - int(self.network_address) - 1, 0)

    def __str__(self) -> str:
        return f"{self.base_address}/{self.prefix_length}"


@dataclass
class HostRecord:
    """
    Information about one probed address.

    Attributes:
        address: Dotted-quad IPv4 address
        status: Reachability status
        latency_ms: Round-trip time in whole milliseconds, only when online
        hostname: Reverse DNS name, or the address when unresolved
        mac_address: Uppercase colon-separated MAC, empty when unresolved
        vendor: Vendor derived from the MAC prefix
        device_type: Heuristic classification
        open_ports: Open TCP ports in ascending order
        last_seen: When the host last answered a probe
    """
    address: str
    status: HostStatus = HostStatus.UNKNOWN
    latency_ms: Optional[int] = None
    hostname: str = ""
    mac_address: str = ""
    vendor: str = "Unknown"
    device_type: DeviceType = DeviceType.UNKNOWN
    open_ports: List[int] = field(default_factory=list)
    last_seen: Optional[datetime] = None

    def __post_init__(self):
        if not self.hostname:
            self.hostname = self.address

    @property
    def is_online(self) -> bool:
        return self.status == HostStatus.ONLINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "hostname": self.hostname,
            "mac_address": self.mac_address,
            "vendor": self.vendor,
            "device_type": self.device_type.value,
            "open_ports": list(self.open_ports),
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
        }


@dataclass
class ScanRecord:
    """
    Complete result of one scan invocation.

    The orchestrator owns the record until it is returned; exporters only
    read it.

    Attributes:
        subnet: Subnet that was scanned
        start_time: When the scan was started
        end_time: When the scan completed or was cancelled
        state: Final (or current) lifecycle state
        total_addresses: Number of usable addresses in the subnet
        total_probed: Number of addresses whose probe reported
        online_count: Number of probed addresses that answered
        offline_count: Number of probed addresses that did not answer
        hosts: Host records keyed by address
        errors: Errors absorbed during the scan, one line each
        settings: Scan request parameters in effect
    """
    subnet: SubnetSpec
    start_time: datetime
    end_time: Optional[datetime] = None
    state: ScanState = ScanState.IDLE
    total_addresses: int = 0
    total_probed: int = 0
    online_count: int = 0
    offline_count: int = 0
    hosts: Dict[str, HostRecord] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        """Scan duration in seconds, 0.0 while still running."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def sorted_hosts(self) -> List[HostRecord]:
        """All host records in ascending numeric address order."""
        return sorted(self.hosts.values(), key=lambda h: address_sort_key(h.address))

    def online_hosts(self) -> List[HostRecord]:
        return [host for host in self.sorted_hosts() if host.is_online]

    def recount(self) -> None:
        """Recompute the probe counters from the host records."""
        statuses = [host.status for host in self.hosts.values()]
        self.online_count = statuses.count(HostStatus.ONLINE)
        self.offline_count = statuses.count(HostStatus.OFFLINE)
        self.total_probed = self.online_count + self.offline_count
