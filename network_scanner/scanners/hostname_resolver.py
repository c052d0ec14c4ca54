"""
Reverse DNS lookups for the Network Scanner.

Uses dnspython so each PTR query carries its own lifetime; the resolver's
configuration is read once and shared by every enrichment worker.
"""

import threading
from typing import Optional

import dns.resolver
from dns.exception import DNSException

from ..utils.logger import Logger, get_logger


class HostnameResolver:
    """
    Best-effort PTR resolver.

    resolve() always returns a usable name: the address itself when the
    lookup fails for any reason.
    """

    def __init__(self, timeout: float = 2.0, logger: Optional[Logger] = None,
                 resolver: Optional[dns.resolver.Resolver] = None):
        """
        Initialize the resolver.

        Args:
            timeout: Lifetime of a single reverse lookup in seconds
            logger: Logger instance for diagnostics
            resolver: Preconfigured dnspython resolver; the system
                configuration is loaded on first use when omitted
        """
        self.timeout = timeout
        self.logger = logger or get_logger(__name__)
        self._resolver = resolver
        self._lock = threading.Lock()
        self._unavailable = False

    def _get_resolver(self) -> Optional[dns.resolver.Resolver]:
        with self._lock:
            if self._resolver is None and not self._unavailable:
                try:
                    self._resolver = dns.resolver.Resolver()
                except DNSException as e:
                    self.logger.warning(f"No usable DNS configuration, hostnames will not be resolved: {e}")
                    self._unavailable = True
            return self._resolver

    def lookup(self, address: str) -> Optional[str]:
        """
        Reverse-resolve an address.

        Args:
            address: IPv4 address

        Returns:
            Optional[str]: Hostname without the trailing dot, or None
        """
        resolver = self._get_resolver()
        if resolver is None:
            return None
        try:
            answer = resolver.resolve_address(address, lifetime=self.timeout)
        except DNSException as e:
            self.logger.debug(f"Reverse lookup failed for {address}: {type(e).__name__}")
            return None

        for rdata in answer:
            name = rdata.target.to_text(omit_final_dot=True)
            if name:
                return name
        return None

    def resolve(self, address: str) -> str:
        """Reverse-resolve an address, falling back to the address itself."""
        return self.lookup(address) or address
