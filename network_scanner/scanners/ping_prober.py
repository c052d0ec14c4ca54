"""
ICMP reachability prober for the Network Scanner.

Sends a single echo request per address through the platform ping command
and turns the outcome into a HostRecord. A host that does not answer is a
normal result (Offline), never an error; only failing to run ping at all is
reported as ProbeDispatchError.
"""

import math
import platform
import re
import subprocess
import time
from datetime import datetime
from typing import List, Optional

from .base_scanner import BaseScanner
from ..core.data_models import HostRecord, HostStatus
from ..utils.error_handler import ProbeDispatchError
from ..utils.logger import Logger

_LATENCY_PATTERN = re.compile(r"time\s*([=<])\s*([\d.]+)\s*ms", re.IGNORECASE)

# Extra seconds granted to the ping process on top of the probe timeout
_PROCESS_GRACE_SECONDS = 2


class ReachabilityProber(BaseScanner):
    """
    Ping based reachability prober.

    Holds no per-probe state, so one instance can serve every worker of a
    scan concurrently.
    """

    scanner_type = "ping"

    def __init__(self, logger: Optional[Logger] = None, system: Optional[str] = None):
        """
        Initialize the prober.

        Args:
            logger: Logger instance for probe diagnostics
            system: Platform name override ("windows", "darwin", "linux");
                detected when omitted
        """
        super().__init__(logger)
        self.system = (system or platform.system()).lower()

    def scan_target(self, address: str, **options) -> HostRecord:
        return self.probe(address, options.get("timeout_ms", 1000))

    def probe(self, address: str, timeout_ms: int = 1000) -> HostRecord:
        """
        Probe one address.

        Args:
            address: IPv4 address to ping
            timeout_ms: How long to wait for the echo reply

        Returns:
            HostRecord with status Online (latency and last_seen set) or
            Offline

        Raises:
            ProbeDispatchError: If the ping command cannot be executed
        """
        address = self._require_valid_target(address)
        cmd = self.build_command(address, timeout_ms)
        process_timeout = math.ceil(timeout_ms / 1000) + _PROCESS_GRACE_SECONDS

        started = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=process_timeout
            )
        except subprocess.TimeoutExpired:
            self._log_debug(f"Ping timeout: {address}")
            return HostRecord(address=address, status=HostStatus.OFFLINE)
        except OSError as e:
            raise ProbeDispatchError(f"Cannot run {cmd[0]} for {address}: {e}") from e
        elapsed_ms = int((time.monotonic() - started) * 1000)

        raw_output = (result.stdout or "") + (result.stderr or "")
        if result.returncode != 0 or not self.analyze_ping_output(raw_output, address):
            self._log_debug(f"Ping failed or no response: {address}")
            return HostRecord(address=address, status=HostStatus.OFFLINE)

        latency = self.parse_latency(raw_output)
        if latency is None:
            latency = elapsed_ms

        self._log_debug(f"Ping successful: {address} ({latency} ms)")
        return HostRecord(
            address=address,
            status=HostStatus.ONLINE,
            latency_ms=latency,
            last_seen=datetime.now()
        )

    def build_command(self, address: str, timeout_ms: int) -> List[str]:
        """
        Build the single-echo ping command for this platform.

        Args:
            address: IPv4 address to ping
            timeout_ms: Reply timeout in milliseconds

        Returns:
            List[str]: Command line
        """
        timeout_ms = max(int(timeout_ms), 1)
        if self.system == "windows":
            # Windows ping: ping -n 1 -w <ms> IP
            return ["ping", "-n", "1", "-w", str(timeout_ms), address]
        if self.system == "darwin":
            # BSD ping on macOS takes the wait time in milliseconds
            return ["ping", "-c", "1", "-W", str(timeout_ms), address]
        # iputils ping: -W takes whole seconds
        timeout_s = max(math.ceil(timeout_ms / 1000), 1)
        return ["ping", "-c", "1", "-W", str(timeout_s), address]

    def analyze_ping_output(self, output: str, target: str) -> bool:
        """
        Analyze ping output to determine if the host actually answered.

        Windows reports "Destination host unreachable" replies from the
        local gateway with exit code 0, so the exit code alone is not enough.

        Args:
            output: Raw ping command output
            target: Target IP address

        Returns:
            bool: True if the host itself replied, False otherwise
        """
        if not output:
            return False

        output_lower = output.lower()

        if self.system == "windows":
            failure_indicators = [
                "destination host unreachable",
                "request timed out",
                "could not find host",
                "general failure",
                "transmit failed",
                "ttl expired in transit",
            ]
            if any(indicator in output_lower for indicator in failure_indicators):
                return False

            if "received = 0" in output_lower:
                return False

            return f"reply from {target}:" in output_lower or "ttl=" in output_lower

        failure_indicators = [
            "destination host unreachable",
            "no route to host",
            "network is unreachable",
            " 0 received",
            " 0 packets received",
        ]
        if any(indicator in output_lower for indicator in failure_indicators):
            return False

        success_indicators = [
            f"bytes from {target}",
            "ttl=",
            "time=",
        ]
        return any(indicator in output_lower for indicator in success_indicators)

    @staticmethod
    def parse_latency(output: str) -> Optional[int]:
        """
        Extract the round-trip time from ping output.

        Args:
            output: Raw ping command output

        Returns:
            Optional[int]: Whole milliseconds ("time<1ms" is 0), or None when
                the output carries no timing
        """
        match = _LATENCY_PATTERN.search(output or "")
        if not match:
            return None
        operator, value = match.groups()
        try:
            millis = float(value)
        except ValueError:
            return None
        if operator == "<":
            return max(math.ceil(millis) - 1, 0)
        return max(int(round(millis)), 0)
