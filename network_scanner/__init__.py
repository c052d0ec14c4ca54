"""
Network Scanner

Concurrent subnet discovery: CIDR range expansion, throttled reachability
probing, best-effort device fingerprinting and multi-format report export.
"""

__version__ = "1.0.0"
__author__ = "Network Scanner Team"
