"""
tests.test_enrichment

Tests for host enrichment and its network collaborators. DNS and port
scanning are replaced by fakes; the port scanner test only talks to a
listener on the loopback interface.
"""

import socket
import unittest
from types import SimpleNamespace
from typing import List

import dns.name
import dns.resolver

from network_scanner.core.data_models import DeviceType, HostRecord, HostStatus
from network_scanner.scanners.enrichment import EnrichmentResolver
from network_scanner.scanners.hostname_resolver import HostnameResolver
from network_scanner.scanners.port_scanner import TcpPortScanner
from network_scanner.utils.error_handler import ErrorHandler, ErrorType
from network_scanner.utils.logger import Logger, LogLevel

QUIET = Logger("test", LogLevel.ERROR)


class FakeHostnames:
    """Hostname resolver answering from a dict."""

    def __init__(self, names=None, fail: bool = False):
        self.names = names or {}
        self.fail = fail

    def resolve(self, address: str) -> str:
        if self.fail:
            raise RuntimeError("resolver exploded")
        return self.names.get(address, address)


class FakePorts:
    """Port scanner returning fixed open ports."""

    def __init__(self, open_ports: List[int]):
        self.open_ports = open_ports
        self.scanned: List[str] = []

    def scan(self, address: str) -> List[int]:
        self.scanned.append(address)
        return list(self.open_ports)


def online(address: str) -> HostRecord:
    return HostRecord(address=address, status=HostStatus.ONLINE, latency_ms=3)


class TestEnrichmentResolver(unittest.TestCase):
    """Test EnrichmentResolver."""

    def test_full_enrichment(self) -> None:
        """Every field is filled in; the vendor rule beats the SSH port."""
        resolver = EnrichmentResolver(
            neighbor_table={"192.168.1.20": "B8:27:EB:12:34:56"},
            hostname_resolver=FakeHostnames({"192.168.1.20": "pi.lan"}),
            port_scanner=FakePorts([22]),
            logger=QUIET,
        )
        record = online("192.168.1.20")
        enriched = resolver.enrich(record)

        self.assertEqual(enriched.hostname, "pi.lan")
        self.assertEqual(enriched.mac_address, "B8:27:EB:12:34:56")
        self.assertEqual(enriched.vendor, "Raspberry Pi")
        self.assertEqual(enriched.open_ports, [22])
        self.assertEqual(enriched.device_type, DeviceType.IOT)
        self.assertEqual(enriched.latency_ms, 3)
        # the input record is left untouched
        self.assertEqual(record.hostname, "192.168.1.20")
        self.assertEqual(record.device_type, DeviceType.UNKNOWN)

    def test_defaults_without_information(self) -> None:
        """A host missing from the neighbor table keeps the defaults."""
        resolver = EnrichmentResolver({}, FakeHostnames(), None, logger=QUIET)
        enriched = resolver.enrich(online("10.0.0.9"))
        self.assertEqual(enriched.hostname, "10.0.0.9")
        self.assertEqual(enriched.mac_address, "")
        self.assertEqual(enriched.vendor, "Unknown")
        self.assertEqual(enriched.open_ports, [])
        self.assertEqual(enriched.device_type, DeviceType.COMPUTER)

    def test_port_scan_disabled(self) -> None:
        """No port scanner means an empty port list."""
        resolver = EnrichmentResolver({}, FakeHostnames({"10.0.0.9": "web01"}), None, logger=QUIET)
        self.assertEqual(resolver.enrich(online("10.0.0.9")).open_ports, [])

    def test_failing_field_degrades_alone(self) -> None:
        """A failing DNS lookup does not prevent the other fields."""
        error_handler = ErrorHandler(QUIET)
        ports = FakePorts([3389])
        resolver = EnrichmentResolver(
            neighbor_table={"10.0.0.9": "00:50:56:00:00:01"},
            hostname_resolver=FakeHostnames(fail=True),
            port_scanner=ports,
            logger=QUIET,
            error_handler=error_handler,
        )
        enriched, errors = resolver.enrich_with_errors(online("10.0.0.9"))

        self.assertEqual(enriched.hostname, "10.0.0.9")
        self.assertEqual(enriched.vendor, "VMware")
        self.assertEqual(enriched.open_ports, [3389])
        self.assertEqual(enriched.device_type, DeviceType.VIRTUAL_MACHINE)
        self.assertEqual(ports.scanned, ["10.0.0.9"])
        self.assertEqual(len(errors), 1)
        self.assertIn("10.0.0.9", errors[0])
        self.assertEqual(error_handler.error_statistics[ErrorType.ENRICHMENT_ERROR], 1)


class FakeDnsResolver:
    """Stands in for dns.resolver.Resolver."""

    def __init__(self, answers=None):
        self.answers = answers or {}

    def resolve_address(self, address: str, lifetime: float = None):
        if address not in self.answers:
            raise dns.resolver.NXDOMAIN()
        return [SimpleNamespace(target=dns.name.from_text(self.answers[address]))]


class TestHostnameResolver(unittest.TestCase):
    """Test reverse DNS handling."""

    def test_ptr_answer(self) -> None:
        """The PTR target is returned without the trailing dot."""
        resolver = HostnameResolver(logger=QUIET, resolver=FakeDnsResolver({"10.0.0.1": "nas.example.com."}))
        self.assertEqual(resolver.lookup("10.0.0.1"), "nas.example.com")
        self.assertEqual(resolver.resolve("10.0.0.1"), "nas.example.com")

    def test_lookup_failure(self) -> None:
        """NXDOMAIN falls back to the address."""
        resolver = HostnameResolver(logger=QUIET, resolver=FakeDnsResolver())
        self.assertIsNone(resolver.lookup("10.0.0.2"))
        self.assertEqual(resolver.resolve("10.0.0.2"), "10.0.0.2")


class TestTcpPortScanner(unittest.TestCase):
    """Test the TCP connect scanner against the loopback interface."""

    def setUp(self) -> None:
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(5)
        self.open_port = self.listener.getsockname()[1]

        probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        probe.bind(("127.0.0.1", 0))
        self.closed_port = probe.getsockname()[1]
        probe.close()

    def tearDown(self) -> None:
        self.listener.close()

    def test_open_and_closed(self) -> None:
        """Only the listening port is reported open."""
        scanner = TcpPortScanner(ports=[self.closed_port, self.open_port], connect_timeout=1.0, logger=QUIET)
        self.assertEqual(scanner.scan("127.0.0.1"), [self.open_port])

    def test_result_sorted(self) -> None:
        """Ports are deduplicated and scanned in ascending order."""
        scanner = TcpPortScanner(ports=[self.open_port, self.open_port], logger=QUIET)
        self.assertEqual(scanner.ports, [self.open_port])
        self.assertEqual(scanner.scan("127.0.0.1", []), [])

    def test_invalid_target(self) -> None:
        """Targets must be IPv4 addresses."""
        with self.assertRaises(ValueError):
            TcpPortScanner(logger=QUIET).scan("localhost")


if __name__ == "__main__":
    unittest.main()
