"""
Scanner modules for the Network Scanner.

This package contains the base scanner interface, the reachability prober,
the enrichment collaborators (neighbor table, reverse DNS, TCP ports) and
the resolver that combines them.
"""

from .base_scanner import BaseScanner
from .ping_prober import ReachabilityProber
from .neighbor_table import NeighborTableReader
from .hostname_resolver import HostnameResolver
from .port_scanner import TcpPortScanner
from .enrichment import EnrichmentResolver

__all__ = [
    'BaseScanner',
    'ReachabilityProber',
    'NeighborTableReader',
    'HostnameResolver',
    'TcpPortScanner',
    'EnrichmentResolver'
]
