"""
tests.test_vendor_lookup

Tests for MAC normalization and OUI vendor lookup.
"""

import unittest

from network_scanner.core.vendor_lookup import UNKNOWN_VENDOR, VendorLookup
from network_scanner.utils import network_utils


class TestNetworkUtils(unittest.TestCase):
    """Test MAC helpers."""

    def test_normalize_notations(self) -> None:
        """Colon, hyphen, bare and dotted forms normalize identically."""
        for mac in ["00:0c:29:ab:cd:ef", "00-0C-29-AB-CD-EF", "000c29abcdef",
                    "000c.29ab.cdef", "0:c:29:ab:cd:ef"]:
            with self.subTest(mac=mac):
                self.assertEqual(network_utils.normalize_mac(mac), "00:0C:29:AB:CD:EF")

    def test_invalid(self) -> None:
        """Garbage is not a MAC."""
        for mac in ["", "(incomplete)", "00:11:22:33:44", "zz:11:22:33:44:55"]:
            with self.subTest(mac=mac):
                self.assertIsNone(network_utils.normalize_mac(mac))
                self.assertFalse(network_utils.is_valid_mac(mac))

    def test_usable(self) -> None:
        """Empty and broadcast MACs identify no interface."""
        self.assertFalse(network_utils.is_usable_mac(network_utils.EMPTY_MAC))
        self.assertFalse(network_utils.is_usable_mac(network_utils.BROADCAST_MAC))
        self.assertTrue(network_utils.is_usable_mac("00:11:22:33:44:55"))

    def test_oui(self) -> None:
        """The OUI is the first three octets."""
        self.assertEqual(network_utils.oui_of("b8-27-eb-01-02-03"), "B8:27:EB")
        self.assertIsNone(network_utils.oui_of("nope"))


class TestVendorLookup(unittest.TestCase):
    """Test the vendor table."""

    def test_known_vendors(self) -> None:
        """Built-in prefixes resolve regardless of notation."""
        lookup = VendorLookup()
        self.assertEqual(lookup.lookup("00:50:56:12:34:56"), "VMware")
        self.assertEqual(lookup.lookup("b8-27-eb-12-34-56"), "Raspberry Pi")

    def test_unknown(self) -> None:
        """Unlisted, empty and invalid MACs are Unknown."""
        lookup = VendorLookup()
        self.assertEqual(lookup.lookup("02:00:00:00:00:01"), UNKNOWN_VENDOR)
        self.assertEqual(lookup.lookup(""), UNKNOWN_VENDOR)
        self.assertEqual(lookup.lookup(None), UNKNOWN_VENDOR)
        self.assertEqual(lookup.lookup("garbage"), UNKNOWN_VENDOR)

    def test_extra_entries(self) -> None:
        """Configured entries extend and override the table."""
        lookup = VendorLookup({"02-00-00": "Lab Gear", "00:50:56": "Our VMware", "bad": "x"})
        self.assertEqual(lookup.lookup("02:00:00:00:00:01"), "Lab Gear")
        self.assertEqual(lookup.lookup("00:50:56:00:00:01"), "Our VMware")
        self.assertEqual(len(lookup), len(VendorLookup()) + 1)


if __name__ == "__main__":
    unittest.main()
