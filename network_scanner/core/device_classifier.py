"""
Device Classification System for the Network Scanner.

This module classifies discovered hosts from the little information a
discovery scan collects:
- Hostname keywords (highest priority)
- Vendor derived from the MAC prefix
- Open TCP port signatures (lowest priority)

Rules are evaluated in order and the first match wins. This is a best-effort
classifier with known false positives (a Windows host running IIS is reported
as a web server, any host named "*-gw" as a gateway). It is not a
security-grade fingerprinter.
"""

import re
from enum import Enum
from typing import Iterable, List, Optional, Set, Pattern
from dataclasses import dataclass, field

from .data_models import DeviceType


class RuleSource(Enum):
    """Which piece of host information a rule inspects."""
    HOSTNAME = "hostname"
    VENDOR = "vendor"
    PORTS = "ports"


@dataclass
class ClassificationRule:
    """
    A rule for classifying hosts.

    Attributes:
        name: Human-readable name for the rule
        device_type: The device type this rule classifies to
        source: Host attribute the rule matches against
        patterns: Regex patterns for HOSTNAME rules, vendor substrings for
            VENDOR rules (case-insensitive)
        ports: Port set for PORTS rules; any open port in the set matches
    """
    name: str
    device_type: DeviceType
    source: RuleSource
    patterns: List[str] = field(default_factory=list)
    ports: Set[int] = field(default_factory=set)
    _compiled: List[Pattern] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self):
        if self.source == RuleSource.HOSTNAME:
            self._compiled = [re.compile(p, re.IGNORECASE) for p in self.patterns]

    def matches(self, hostname: str, vendor: str, open_ports: Set[int]) -> bool:
        if self.source == RuleSource.HOSTNAME:
            return bool(hostname) and any(p.search(hostname) for p in self._compiled)
        if self.source == RuleSource.VENDOR:
            vendor_lower = (vendor or "").lower()
            return any(pattern.lower() in vendor_lower for pattern in self.patterns)
        return bool(self.ports & open_ports)


# Hostname tokens are delimited by start/end, dots, hyphens, underscores or digits
_TOKEN_START = r"(?:^|[.\-_\d])"
_TOKEN_END = r"(?:$|[.\-_\d])"


def _token(word: str) -> str:
    return f"{_TOKEN_START}{word}{_TOKEN_END}"


class DeviceClassifier:
    """
    Ordered heuristic device classifier.

    Hostname rules take priority over vendor rules, which take priority over
    open-port rules. When nothing matches, the host is reported as a generic
    computer.
    """

    def __init__(self, rules: Optional[List[ClassificationRule]] = None,
                 default_type: DeviceType = DeviceType.COMPUTER):
        """
        Initialize the device classifier.

        Args:
            rules: Ordered rules; defaults to the built-in rule chain
            default_type: Type reported when no rule matches
        """
        self.classification_rules = rules if rules is not None else self._initialize_classification_rules()
        self.default_type = default_type

    def classify(self, hostname: str = "", vendor: str = "",
                 open_ports: Iterable[int] = ()) -> DeviceType:
        """
        Classify a host.

        Args:
            hostname: Resolved hostname (the address itself when unresolved)
            vendor: Vendor from the MAC prefix lookup
            open_ports: Open TCP ports

        Returns:
            DeviceType of the first matching rule, or the default type
        """
        rule = self.matching_rule(hostname, vendor, open_ports)
        return rule.device_type if rule else self.default_type

    def matching_rule(self, hostname: str = "", vendor: str = "",
                      open_ports: Iterable[int] = ()) -> Optional[ClassificationRule]:
        port_set = set(open_ports or ())
        for rule in self.classification_rules:
            if rule.matches(hostname, vendor, port_set):
                return rule
        return None

    def _initialize_classification_rules(self) -> List[ClassificationRule]:
        """
        Initialize the ordered rule chain.

        Returns:
            List of ClassificationRule objects, highest priority first
        """
        rules = []

        # Hostname keywords
        rules.append(ClassificationRule(
            name="Router hostname",
            device_type=DeviceType.ROUTER,
            source=RuleSource.HOSTNAME,
            patterns=[r"router", r"gateway", _token(r"gw"), _token(r"rtr")]
        ))

        rules.append(ClassificationRule(
            name="Switch hostname",
            device_type=DeviceType.SWITCH,
            source=RuleSource.HOSTNAME,
            patterns=[r"switch", _token(r"sw")]
        ))

        rules.append(ClassificationRule(
            name="Printer hostname",
            device_type=DeviceType.PRINTER,
            source=RuleSource.HOSTNAME,
            patterns=[r"printer", r"laserjet", r"officejet", r"deskjet", _token(r"prn"), r"print-?server"]
        ))

        rules.append(ClassificationRule(
            name="Camera hostname",
            device_type=DeviceType.CAMERA,
            source=RuleSource.HOSTNAME,
            patterns=[r"camera", r"ipcam", _token(r"cam"), _token(r"nvr"), _token(r"dvr")]
        ))

        # Vendor
        rules.append(ClassificationRule(
            name="Virtualization vendor",
            device_type=DeviceType.VIRTUAL_MACHINE,
            source=RuleSource.VENDOR,
            patterns=["vmware", "virtualbox", "hyper-v", "qemu", "kvm", "xen", "parallels"]
        ))

        rules.append(ClassificationRule(
            name="Embedded device vendor",
            device_type=DeviceType.IOT,
            source=RuleSource.VENDOR,
            patterns=["raspberry", "espressif", "arduino"]
        ))

        rules.append(ClassificationRule(
            name="Camera vendor",
            device_type=DeviceType.CAMERA,
            source=RuleSource.VENDOR,
            patterns=["hikvision", "dahua", "axis"]
        ))

        rules.append(ClassificationRule(
            name="Printer vendor",
            device_type=DeviceType.PRINTER,
            source=RuleSource.VENDOR,
            patterns=["brother", "canon", "epson", "lexmark"]
        ))

        rules.append(ClassificationRule(
            name="Network equipment vendor",
            device_type=DeviceType.NETWORK_DEVICE,
            source=RuleSource.VENDOR,
            patterns=["ubiquiti", "mikrotik", "netgear", "tp-link", "cisco"]
        ))

        # Open port signatures
        rules.append(ClassificationRule(
            name="Web service ports",
            device_type=DeviceType.WEB_SERVER,
            source=RuleSource.PORTS,
            ports={80, 443}
        ))

        rules.append(ClassificationRule(
            name="SSH port",
            device_type=DeviceType.LINUX,
            source=RuleSource.PORTS,
            ports={22}
        ))

        rules.append(ClassificationRule(
            name="Windows ports",
            device_type=DeviceType.WINDOWS,
            source=RuleSource.PORTS,
            ports={3389, 139, 445}  # RDP, NetBIOS, SMB
        ))

        return rules
