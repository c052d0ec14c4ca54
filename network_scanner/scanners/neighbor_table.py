"""
ARP/neighbor table reader for the Network Scanner.

The system neighbor table maps local-network IP addresses to MAC addresses.
A scan captures it once, after probing has populated it, and shares the
resulting read-only snapshot with every enrichment worker.
"""

import platform
import subprocess
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from ..utils.logger import Logger, get_logger
from ..utils.network_utils import is_valid_ip, normalize_mac, is_usable_mac

PROC_ARP_PATH = Path("/proc/net/arp")


class NeighborTableReader:
    """
    Reads the OS neighbor table.

    Sources, in order of preference: /proc/net/arp (Linux, no subprocess),
    "ip neigh" (Linux), "arp -a" (Windows, macOS, BSD and Linux fallback).
    """

    def __init__(self, logger: Optional[Logger] = None, system: Optional[str] = None,
                 proc_path: Path = PROC_ARP_PATH):
        """
        Initialize the reader.

        Args:
            logger: Logger instance for diagnostics
            system: Platform name override; detected when omitted
            proc_path: Location of the kernel ARP table on Linux
        """
        self.logger = logger or get_logger(__name__)
        self.system = (system or platform.system()).lower()
        self.proc_path = proc_path

    def snapshot(self) -> Mapping[str, str]:
        """
        Capture the neighbor table.

        Never raises: a table that cannot be read is reported as empty, and
        hosts simply end up without a MAC address.

        Returns:
            Read-only mapping of IP address -> normalized MAC address
        """
        table: Dict[str, str] = {}
        try:
            if self.system == "linux":
                table = self._read_proc_arp()
                if not table:
                    table = self.parse_ip_neigh(self._run(["ip", "neigh"]))
            if not table:
                table = self.parse_arp_a(self._run(["arp", "-a"]))
        except OSError as e:
            self.logger.warning(f"Failed to read neighbor table: {e}")

        self.logger.debug(f"Neighbor table contains {len(table)} entries")
        return MappingProxyType(table)

    def _run(self, cmd) -> str:
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=10
            )
        except FileNotFoundError:
            self.logger.debug(f"{cmd[0]} not available")
            return ""
        except subprocess.TimeoutExpired:
            self.logger.warning(f"'{' '.join(cmd)}' timed out")
            return ""
        if result.returncode != 0:
            self.logger.debug(f"'{' '.join(cmd)}' exited with code {result.returncode}")
            return ""
        return result.stdout or ""

    def _read_proc_arp(self) -> Dict[str, str]:
        if not self.proc_path.exists():
            return {}
        return self.parse_proc_arp(self.proc_path.read_text(encoding="utf-8", errors="replace"))

    @staticmethod
    def _add_entry(table: Dict[str, str], ip: str, mac: str) -> None:
        normalized = normalize_mac(mac)
        if is_valid_ip(ip) and is_usable_mac(normalized):
            table[ip] = normalized

    @classmethod
    def parse_proc_arp(cls, content: str) -> Dict[str, str]:
        """
        Parse /proc/net/arp.

        Format: "IP address  HW type  Flags  HW address  Mask  Device";
        flags 0x0 mark incomplete entries.
        """
        table: Dict[str, str] = {}
        for line in content.splitlines()[1:]:
            parts = line.split()
            if len(parts) < 4 or parts[2] == "0x0":
                continue
            cls._add_entry(table, parts[0], parts[3])
        return table

    @classmethod
    def parse_ip_neigh(cls, content: str) -> Dict[str, str]:
        """
        Parse "ip neigh" output.

        Format: "192.168.1.1 dev eth0 lladdr 00:11:22:33:44:55 REACHABLE"
        """
        table: Dict[str, str] = {}
        for line in content.splitlines():
            parts = line.split()
            if "lladdr" not in parts or parts[-1] in ("FAILED", "INCOMPLETE"):
                continue
            mac_idx = parts.index("lladdr") + 1
            if mac_idx < len(parts):
                cls._add_entry(table, parts[0], parts[mac_idx])
        return table

    @classmethod
    def parse_arp_a(cls, content: str) -> Dict[str, str]:
        """
        Parse "arp -a" output from Windows or Unix.

        Windows: "  192.168.1.1          00-11-22-33-44-55     dynamic"
        Unix:    "router (192.168.1.1) at 0:11:22:33:44:55 on en0 ifscope [ethernet]"
        """
        table: Dict[str, str] = {}
        for line in content.splitlines():
            line = line.strip()
            if not line or "Interface:" in line or "Internet Address" in line:
                continue

            if "(" in line and ")" in line and " at " in line:
                ip = line.split("(", 1)[1].split(")", 1)[0]
                mac = line.split(" at ", 1)[1].split()[0]
                cls._add_entry(table, ip, mac)
                continue

            parts = line.split()
            if len(parts) >= 2:
                cls._add_entry(table, parts[0], parts[1])
        return table
