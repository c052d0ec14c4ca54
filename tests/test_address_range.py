"""
tests.test_address_range

Tests for CIDR parsing and host range expansion.
"""

import ipaddress
import unittest

from network_scanner.core.address_range import expand, host_count, iter_hosts, parse_subnet
from network_scanner.core.data_models import SubnetSpec, address_sort_key, compare_addresses
from network_scanner.utils.error_handler import ParseError


class TestParseSubnet(unittest.TestCase):
    """Test parsing of CIDR notation."""

    def test_parse_valid(self) -> None:
        """A well-formed subnet yields base address and prefix."""
        subnet_spec = parse_subnet("192.168.1.0/24")
        self.assertEqual(subnet_spec.base_address, ipaddress.IPv4Address("192.168.1.0"))
        self.assertEqual(subnet_spec.prefix_length, 24)
        self.assertEqual(str(subnet_spec), "192.168.1.0/24")

    def test_surrounding_whitespace(self) -> None:
        """Leading and trailing whitespace is tolerated."""
        self.assertEqual(parse_subnet("  10.0.0.0/8 \n").prefix_length, 8)

    def test_host_bits_are_masked(self) -> None:
        """Host bits in the base address do not change the range."""
        subnet_spec = parse_subnet("192.168.1.77/24")
        self.assertEqual(subnet_spec.network_address, ipaddress.IPv4Address("192.168.1.0"))
        self.assertEqual(subnet_spec.broadcast_address, ipaddress.IPv4Address("192.168.1.255"))

    def test_malformed_input(self) -> None:
        """Every malformed form raises ParseError."""
        for text in ["bad-subnet", "192.168.1.0", "192.168.1.0/33", "192.168.1.0/-1",
                     "192.168.1.0/abc", "192.168.1.0/", "192.168.256.0/24",
                     "192.168.1/24", "192.168.1.0.0/24", "a.b.c.d/24", "1.2.3.4/24/1", "",
                     "192.168.1.0/\u00b2", "192.168.1.\u00b2/24", "\uff11\uff19\uff12.168.1.0/24",
                     "192.168.1.0/\uff12\uff14"]:
            with self.subTest(text=text):
                with self.assertRaises(ParseError):
                    parse_subnet(text)

    def test_non_string(self) -> None:
        """Non-string input is a parse failure."""
        with self.assertRaises(ParseError):
            parse_subnet(None)


class TestExpand(unittest.TestCase):
    """Test host range expansion."""

    def test_class_c(self) -> None:
        """A /24 expands to .1 through .254 in ascending order."""
        hosts = expand("192.168.1.0/24")
        self.assertEqual(len(hosts), 254)
        self.assertEqual(str(hosts[0]), "192.168.1.1")
        self.assertEqual(str(hosts[-1]), "192.168.1.254")
        self.assertEqual(hosts, sorted(hosts))

    def test_sizes(self) -> None:
        """Prefixes up to /30 have 2**(32-N) - 2 usable hosts."""
        for prefix in range(16, 31):
            with self.subTest(prefix=prefix):
                subnet = f"10.20.0.0/{prefix}"
                self.assertEqual(len(expand(subnet)), 2 ** (32 - prefix) - 2)
                self.assertEqual(host_count(subnet), 2 ** (32 - prefix) - 2)

    def test_degenerate_prefixes(self) -> None:
        """/31 and /32 have no usable hosts."""
        self.assertEqual(expand("10.0.0.0/31"), [])
        self.assertEqual(expand("10.0.0.5/32"), [])
        self.assertEqual(host_count("10.0.0.5/32"), 0)

    def test_accepts_subnet_spec(self) -> None:
        """A parsed SubnetSpec is accepted as well as a string."""
        subnet_spec = SubnetSpec(ipaddress.IPv4Address("172.16.0.0"), 30)
        self.assertEqual([str(a) for a in expand(subnet_spec)], ["172.16.0.1", "172.16.0.2"])

    def test_iter_hosts_is_lazy(self) -> None:
        """A /8 can be iterated without materializing the range."""
        iterator = iter_hosts("10.0.0.0/8")
        self.assertEqual(str(next(iterator)), "10.0.0.1")
        self.assertEqual(str(next(iterator)), "10.0.0.2")

    def test_invalid_string(self) -> None:
        """expand() propagates ParseError."""
        with self.assertRaises(ParseError):
            expand("300.1.1.0/24")


class TestAddressOrdering(unittest.TestCase):
    """Test numeric address ordering."""

    def test_numeric_not_lexical(self) -> None:
        """.9 sorts before .10."""
        self.assertLess(compare_addresses("192.168.1.9", "192.168.1.10"), 0)
        self.assertGreater(compare_addresses("10.0.0.1", "9.255.255.255"), 0)
        self.assertEqual(compare_addresses("10.0.0.1", "10.0.0.1"), 0)

    def test_sort_key(self) -> None:
        """Sorting with address_sort_key is numeric."""
        addresses = ["192.168.1.10", "192.168.1.9", "192.168.1.100", "192.168.1.1"]
        self.assertEqual(sorted(addresses, key=address_sort_key),
                         ["192.168.1.1", "192.168.1.9", "192.168.1.10", "192.168.1.100"])


if __name__ == "__main__":
    unittest.main()
