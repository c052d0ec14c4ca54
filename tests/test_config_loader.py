"""
tests.test_config_loader

Tests for YAML configuration loading, validation and defaults.
"""

import shutil
import tempfile
import unittest
from pathlib import Path

from network_scanner.config.config_loader import (
    DEFAULT_PORTS,
    ConfigLoader,
    ExportConfig,
    PortScanConfig,
    ScanConfig,
)
from network_scanner.scanners import port_scanner
from network_scanner.scanners.port_scanner import TcpPortScanner
from network_scanner.utils.logger import Logger, LogLevel

QUIET = Logger("test", LogLevel.ERROR)


class TestConfigLoader(unittest.TestCase):
    """Test ConfigLoader."""

    def setUp(self) -> None:
        self.config_dir = Path(tempfile.mkdtemp())
        self.loader = ConfigLoader(str(self.config_dir), QUIET)

    def tearDown(self) -> None:
        shutil.rmtree(self.config_dir, ignore_errors=True)

    def write(self, name: str, content: str) -> None:
        (self.config_dir / name).write_text(content, encoding="utf-8")

    def test_missing_files_use_defaults(self) -> None:
        """Absent files yield the dataclass defaults."""
        self.assertEqual(self.loader.load_scan_config(), ScanConfig())
        self.assertEqual(self.loader.load_port_config(), PortScanConfig())
        self.assertEqual(self.loader.load_export_config(), ExportConfig())

    def test_scan_config(self) -> None:
        """Valid values are taken from the file."""
        self.write("scan_config.yml", """
scan:
  timeout_ms: 500
  max_concurrent_probes: 20
  max_concurrent_enrichment: 4
  enable_port_scan: false
  dns_timeout: 0.5
""")
        config = self.loader.load_scan_config()
        self.assertEqual(config, ScanConfig(500, 20, 4, False, 0.5))

    def test_invalid_values_fall_back(self) -> None:
        """Invalid values are replaced field by field."""
        self.write("scan_config.yml", """
scan:
  timeout_ms: -5
  max_concurrent_probes: lots
  enable_port_scan: "yes"
  dns_timeout: 0
""")
        config = self.loader.load_scan_config()
        self.assertEqual(config, ScanConfig())

    def test_broken_yaml(self) -> None:
        """A YAML syntax error yields defaults."""
        self.write("scan_config.yml", "scan: [unclosed\n")
        self.assertEqual(self.loader.load_scan_config(), ScanConfig())

    def test_wrong_structure(self) -> None:
        """A file without the expected section yields defaults."""
        self.write("port_config.yml", "- 22\n- 80\n")
        self.assertEqual(self.loader.load_port_config(), PortScanConfig())

    def test_port_validation(self) -> None:
        """Ports outside 1..65535 are dropped, the rest sorted and deduplicated."""
        self.write("port_config.yml", """
ports:
  ports: [443, 0, 22, 70000, 22, "http"]
  connect_timeout: 0.25
  max_workers_per_host: 4
""")
        config = self.loader.load_port_config()
        self.assertEqual(config.ports, [22, 443])
        self.assertEqual(config.connect_timeout, 0.25)
        self.assertEqual(config.max_workers_per_host, 4)

    def test_no_valid_ports(self) -> None:
        """An all-invalid port list falls back to the default list."""
        self.write("port_config.yml", "ports:\n  ports: [0, -1]\n")
        self.assertEqual(self.loader.load_port_config().ports, DEFAULT_PORTS)

    def test_port_scanner_shares_default_ports(self) -> None:
        """The port scanner and the port config start from the same list."""
        self.assertEqual(TcpPortScanner(logger=QUIET).ports, PortScanConfig().ports)
        self.assertIs(port_scanner.DEFAULT_PORTS, DEFAULT_PORTS)

    def test_export_config(self) -> None:
        """Formats are lowercased and filtered; vendors become strings."""
        self.write("export_config.yml", """
export:
  formats: [CSV, pdf, xml, csv]
  output_dir: /tmp/reports
  csv_port_delimiter: "|"
  extra_vendors:
    "02:00:00": Lab Gear
""")
        config = self.loader.load_export_config()
        self.assertEqual(config.formats, ["csv", "xml"])
        self.assertEqual(config.output_dir, "/tmp/reports")
        self.assertEqual(config.csv_port_delimiter, "|")
        self.assertEqual(config.extra_vendors, {"02:00:00": "Lab Gear"})

    def test_comma_delimiter_rejected(self) -> None:
        """A comma would break the CSV columns."""
        self.write("export_config.yml", "export:\n  csv_port_delimiter: \",\"\n")
        self.assertEqual(self.loader.load_export_config().csv_port_delimiter, ";")

    def test_create_default_configs(self) -> None:
        """Generated files load back as the defaults and are not overwritten."""
        self.write("scan_config.yml", "scan:\n  timeout_ms: 300\n")
        self.loader.create_default_configs()

        self.assertTrue((self.config_dir / "port_config.yml").exists())
        self.assertTrue((self.config_dir / "export_config.yml").exists())
        self.assertEqual(self.loader.load_scan_config().timeout_ms, 300)
        self.assertEqual(self.loader.load_port_config(), PortScanConfig())
        self.assertEqual(self.loader.load_export_config(), ExportConfig())

    def test_shipped_defaults(self) -> None:
        """The YAML files shipped with the package match the defaults."""
        loader = ConfigLoader(logger=QUIET)
        self.assertEqual(loader.load_scan_config(), ScanConfig())
        self.assertEqual(loader.load_port_config(), PortScanConfig())
        self.assertEqual(loader.load_export_config(), ExportConfig())


if __name__ == "__main__":
    unittest.main()
