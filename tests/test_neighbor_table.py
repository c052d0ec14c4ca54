"""
tests.test_neighbor_table

Tests for neighbor table parsing and snapshot source selection.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from network_scanner.scanners.neighbor_table import NeighborTableReader
from network_scanner.utils.logger import Logger, LogLevel

QUIET = Logger("test", LogLevel.ERROR)

PROC_ARP = """IP address       HW type     Flags       HW address            Mask     Device
192.168.1.1      0x1         0x2         00:11:22:33:44:55     *        eth0
192.168.1.20     0x1         0x2         b8:27:eb:aa:bb:cc     *        eth0
192.168.1.30     0x1         0x0         00:00:00:00:00:00     *        eth0
"""

IP_NEIGH = """192.168.1.1 dev eth0 lladdr 00:11:22:33:44:55 REACHABLE
192.168.1.7 dev eth0 lladdr 00:50:56:01:02:03 STALE
192.168.1.8 dev eth0  FAILED
192.168.1.9 dev eth0 lladdr 00:00:00:00:00:00 INCOMPLETE
fe80::1 dev eth0 lladdr 00:11:22:33:44:55 router REACHABLE
"""

ARP_A_WINDOWS = """
Interface: 192.168.1.2 --- 0xb
  Internet Address      Physical Address      Type
  192.168.1.1           00-11-22-33-44-55     dynamic
  192.168.1.255         ff-ff-ff-ff-ff-ff     static
"""

ARP_A_UNIX = """router.lan (192.168.1.1) at 0:11:22:3:44:55 on en0 ifscope [ethernet]
? (192.168.1.40) at (incomplete) on en0 ifscope [ethernet]
"""


class TestParsers(unittest.TestCase):
    """Test the individual table formats."""

    def test_proc_arp(self) -> None:
        """Complete entries are normalized, incomplete ones skipped."""
        table = NeighborTableReader.parse_proc_arp(PROC_ARP)
        self.assertEqual(table, {
            "192.168.1.1": "00:11:22:33:44:55",
            "192.168.1.20": "B8:27:EB:AA:BB:CC",
        })

    def test_ip_neigh(self) -> None:
        """FAILED, INCOMPLETE and IPv6 entries are skipped."""
        table = NeighborTableReader.parse_ip_neigh(IP_NEIGH)
        self.assertEqual(table, {
            "192.168.1.1": "00:11:22:33:44:55",
            "192.168.1.7": "00:50:56:01:02:03",
        })

    def test_arp_a_windows(self) -> None:
        """Windows hyphenated MACs are converted; broadcast is dropped."""
        table = NeighborTableReader.parse_arp_a(ARP_A_WINDOWS)
        self.assertEqual(table, {"192.168.1.1": "00:11:22:33:44:55"})

    def test_arp_a_unix(self) -> None:
        """BSD single-digit groups are zero padded; incomplete entries dropped."""
        table = NeighborTableReader.parse_arp_a(ARP_A_UNIX)
        self.assertEqual(table, {"192.168.1.1": "00:11:22:03:44:55"})


class TestSnapshot(unittest.TestCase):
    """Test source selection of snapshot()."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.mkdtemp()

    def tearDown(self) -> None:
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def test_proc_file_preferred(self) -> None:
        """On Linux /proc/net/arp is read without running a command."""
        proc_path = Path(self.tmpdir) / "arp"
        proc_path.write_text(PROC_ARP, encoding="utf-8")
        reader = NeighborTableReader(QUIET, system="linux", proc_path=proc_path)
        with mock.patch.object(reader, "_run") as run:
            table = reader.snapshot()
        run.assert_not_called()
        self.assertEqual(len(table), 2)

    def test_fallback_to_ip_neigh(self) -> None:
        """Without /proc the ip command is used."""
        reader = NeighborTableReader(QUIET, system="linux",
                                     proc_path=Path(os.path.join(self.tmpdir, "missing")))
        with mock.patch.object(reader, "_run", return_value=IP_NEIGH) as run:
            table = reader.snapshot()
        run.assert_called_once_with(["ip", "neigh"])
        self.assertIn("192.168.1.7", table)

    def test_snapshot_is_read_only(self) -> None:
        """The snapshot cannot be modified by enrichment workers."""
        reader = NeighborTableReader(QUIET, system="windows")
        with mock.patch.object(reader, "_run", return_value=ARP_A_WINDOWS):
            table = reader.snapshot()
        with self.assertRaises(TypeError):
            table["192.168.1.99"] = "00:11:22:33:44:66"

    def test_unreadable_table_is_empty(self) -> None:
        """No tool output gives an empty table rather than an error."""
        reader = NeighborTableReader(QUIET, system="darwin")
        with mock.patch.object(reader, "_run", return_value=""):
            self.assertEqual(len(reader.snapshot()), 0)


if __name__ == "__main__":
    unittest.main()
