"""
TCP connect port scanner for the Network Scanner.

Checks a fixed list of candidate ports on one host. A port is open only when
the TCP handshake completes; refused, timed out and filtered ports are all
reported as closed.
"""

import socket
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .base_scanner import BaseScanner
from ..config.config_loader import DEFAULT_PORTS
from ..utils.logger import Logger


class TcpPortScanner(BaseScanner):
    """
    Per-host TCP connect scanner with bounded concurrency.

    Concurrency is bounded per host: every scan() call uses its own small
    pool of at most max_workers connection attempts.
    """

    scanner_type = "tcp"

    def __init__(self, ports: Optional[Iterable[int]] = None, connect_timeout: float = 1.0,
                 max_workers: int = 10, logger: Optional[Logger] = None):
        """
        Initialize the port scanner.

        Args:
            ports: Candidate ports; defaults to DEFAULT_PORTS
            connect_timeout: Timeout of each connection attempt in seconds
            max_workers: Maximum simultaneous connection attempts per host
            logger: Logger instance for diagnostics
        """
        super().__init__(logger)
        self.ports = sorted(set(ports if ports is not None else DEFAULT_PORTS))
        self.connect_timeout = connect_timeout
        self.max_workers = max(1, max_workers)

    def scan_target(self, address: str, **options) -> List[int]:
        return self.scan(address, options.get("ports"))

    def is_port_open(self, address: str, port: int) -> bool:
        """
        Attempt one TCP connection.

        Args:
            address: IPv4 address
            port: TCP port

        Returns:
            bool: True only if the connection was established
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.settimeout(self.connect_timeout)
            return sock.connect_ex((address, port)) == 0
        except OSError:
            return False
        finally:
            sock.close()

    def scan(self, address: str, ports: Optional[Iterable[int]] = None) -> List[int]:
        """
        Scan the candidate ports of one host.

        Args:
            address: IPv4 address
            ports: Ports to check instead of the configured list

        Returns:
            List[int]: Open ports in ascending order
        """
        address = self._require_valid_target(address)
        candidates = sorted(set(ports)) if ports is not None else self.ports
        if not candidates:
            return []

        workers = min(self.max_workers, len(candidates))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"tcp-{address}") as executor:
            results = executor.map(lambda port: (port, self.is_port_open(address, port)), candidates)
            open_ports = [port for port, is_open in results if is_open]

        if open_ports:
            self._log_debug(f"{address}: open ports {open_ports}")
        return open_ports
