"""
Configuration loader for the Network Scanner.
Handles loading and validation of YAML configuration files with fallback to defaults.
"""

import yaml
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from pathlib import Path

from ..utils.logger import Logger, get_logger

DEFAULT_PORTS = [21, 22, 23, 25, 53, 80, 110, 135, 139, 143, 443, 445, 3389, 8080]
SUPPORTED_EXPORT_FORMATS = ["html", "csv", "json", "xml"]


@dataclass
class ScanConfig:
    """Configuration for reachability probing and enrichment."""
    timeout_ms: int = 1000
    max_concurrent_probes: int = 50
    max_concurrent_enrichment: int = 16
    enable_port_scan: bool = True
    dns_timeout: float = 2.0


@dataclass
class PortScanConfig:
    """Configuration for TCP connect port scanning."""
    ports: List[int] = field(default_factory=lambda: list(DEFAULT_PORTS))
    connect_timeout: float = 1.0
    max_workers_per_host: int = 10


@dataclass
class ExportConfig:
    """Configuration for report export."""
    formats: List[str] = field(default_factory=lambda: ["html", "json"])
    output_dir: str = "network_scanner/results"
    csv_port_delimiter: str = ";"
    extra_vendors: Dict[str, str] = field(default_factory=dict)


class ConfigLoader:
    """
    Loads and validates YAML configuration files for the network scanner.
    Provides fallback to default configurations when files are missing.
    """

    def __init__(self, config_dir: Optional[str] = None, logger: Optional[Logger] = None):
        """
        Initialize ConfigLoader.

        Args:
            config_dir: Directory containing configuration files.
                       Defaults to the config directory relative to this file.
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

        self.logger = logger or get_logger(__name__)

    def _load_section(self, config_file: str, section: str) -> Optional[Dict[str, Any]]:
        """
        Read one top-level section of a YAML file.

        Returns:
            The section mapping, or None when the defaults should be used
        """
        config_path = self.config_dir / config_file

        if not config_path.exists():
            self.logger.warning(f"{section} config file not found at {config_path}. Using default configuration.")
            return None

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            self.logger.error(f"Error parsing {section} config file {config_path}: {e}")
            self.logger.warning(f"Using default {section} configuration.")
            return None
        except OSError as e:
            self.logger.error(f"Unexpected error loading {section} config: {e}")
            self.logger.warning(f"Using default {section} configuration.")
            return None

        if not isinstance(config_data, dict) or not isinstance(config_data.get(section), dict):
            self.logger.warning(f"Invalid {section} config structure in {config_path}. Using default configuration.")
            return None

        return config_data[section]

    def load_scan_config(self, config_file: str = "scan_config.yml") -> ScanConfig:
        """
        Load scan configuration from YAML file.

        Args:
            config_file: Name of the scan configuration file

        Returns:
            ScanConfig object with loaded or default configuration
        """
        scan_data = self._load_section(config_file, 'scan')
        if scan_data is None:
            return ScanConfig()

        defaults = ScanConfig()
        return ScanConfig(
            timeout_ms=self._validate_positive_int(scan_data.get('timeout_ms', defaults.timeout_ms), 'timeout_ms', defaults.timeout_ms),
            max_concurrent_probes=self._validate_positive_int(scan_data.get('max_concurrent_probes', defaults.max_concurrent_probes), 'max_concurrent_probes', defaults.max_concurrent_probes),
            max_concurrent_enrichment=self._validate_positive_int(scan_data.get('max_concurrent_enrichment', defaults.max_concurrent_enrichment), 'max_concurrent_enrichment', defaults.max_concurrent_enrichment),
            enable_port_scan=self._validate_bool(scan_data.get('enable_port_scan', defaults.enable_port_scan), 'enable_port_scan', defaults.enable_port_scan),
            dns_timeout=self._validate_positive_float(scan_data.get('dns_timeout', defaults.dns_timeout), 'dns_timeout', defaults.dns_timeout)
        )

    def load_port_config(self, config_file: str = "port_config.yml") -> PortScanConfig:
        """
        Load port scan configuration from YAML file.

        Args:
            config_file: Name of the port scan configuration file

        Returns:
            PortScanConfig object with loaded or default configuration
        """
        port_data = self._load_section(config_file, 'ports')
        if port_data is None:
            return PortScanConfig()

        defaults = PortScanConfig()
        return PortScanConfig(
            ports=self._validate_ports(port_data.get('ports', defaults.ports)),
            connect_timeout=self._validate_positive_float(port_data.get('connect_timeout', defaults.connect_timeout), 'connect_timeout', defaults.connect_timeout),
            max_workers_per_host=self._validate_positive_int(port_data.get('max_workers_per_host', defaults.max_workers_per_host), 'max_workers_per_host', defaults.max_workers_per_host)
        )

    def load_export_config(self, config_file: str = "export_config.yml") -> ExportConfig:
        """
        Load export configuration from YAML file.

        Args:
            config_file: Name of the export configuration file

        Returns:
            ExportConfig object with loaded or default configuration
        """
        export_data = self._load_section(config_file, 'export')
        if export_data is None:
            return ExportConfig()

        defaults = ExportConfig()
        delimiter = export_data.get('csv_port_delimiter', defaults.csv_port_delimiter)
        if not isinstance(delimiter, str) or not delimiter or delimiter == ",":
            self.logger.warning(f"Invalid csv_port_delimiter: {delimiter!r}. Using default: {defaults.csv_port_delimiter!r}")
            delimiter = defaults.csv_port_delimiter

        vendors = export_data.get('extra_vendors') or {}
        if not isinstance(vendors, dict):
            self.logger.warning(f"Invalid extra_vendors: {vendors}. Must be a mapping. Ignoring.")
            vendors = {}

        return ExportConfig(
            formats=self._validate_formats(export_data.get('formats', defaults.formats)),
            output_dir=str(export_data.get('output_dir') or defaults.output_dir),
            csv_port_delimiter=delimiter,
            extra_vendors={str(k): str(v) for k, v in vendors.items()}
        )

    def _validate_positive_int(self, value: Any, field_name: str, default: int) -> int:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated integer value or default
        """
        if isinstance(value, bool):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default
        try:
            int_value = int(value)
            if int_value <= 0:
                self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
                return default
            return int_value
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}")
            return default

    def _validate_positive_float(self, value: Any, field_name: str, default: float) -> float:
        if isinstance(value, bool):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}")
            return default
        try:
            float_value = float(value)
        except (ValueError, TypeError):
            self.logger.warning(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}")
            return default
        if float_value <= 0:
            self.logger.warning(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}")
            return default
        return float_value

    def _validate_bool(self, value: Any, field_name: str, default: bool) -> bool:
        if isinstance(value, bool):
            return value
        self.logger.warning(f"Invalid {field_name}: {value}. Must be true or false. Using default: {default}")
        return default

    def _validate_ports(self, ports: Any) -> List[int]:
        """
        Validate the candidate port list.

        Args:
            ports: Ports to validate

        Returns:
            Sorted list of valid ports, or the default list
        """
        if not isinstance(ports, list):
            self.logger.warning(f"Invalid ports: {ports}. Must be a list. Using default port list")
            return list(DEFAULT_PORTS)

        valid_ports = []
        for port in ports:
            if isinstance(port, int) and not isinstance(port, bool) and 1 <= port <= 65535:
                valid_ports.append(port)
            else:
                self.logger.warning(f"Invalid port: {port}. Skipping.")

        if not valid_ports:
            self.logger.warning("No valid ports found. Using default port list")
            return list(DEFAULT_PORTS)

        return sorted(set(valid_ports))

    def _validate_formats(self, formats: Any) -> List[str]:
        if isinstance(formats, str):
            formats = [formats]
        if not isinstance(formats, list):
            self.logger.warning(f"Invalid formats: {formats}. Must be a list. Using default: ['html', 'json']")
            return ["html", "json"]

        valid_formats = []
        for fmt in formats:
            fmt = str(fmt).lower()
            if fmt in SUPPORTED_EXPORT_FORMATS:
                if fmt not in valid_formats:
                    valid_formats.append(fmt)
            else:
                self.logger.warning(f"Unsupported export format: {fmt}. Skipping.")

        if not valid_formats:
            self.logger.warning("No valid export formats found. Using default: ['html', 'json']")
            return ["html", "json"]

        return valid_formats

    def create_default_configs(self) -> None:
        """
        Create default configuration files if they don't exist.
        """
        defaults = {
            "scan_config.yml": {'scan': vars(ScanConfig())},
            "port_config.yml": {'ports': vars(PortScanConfig())},
            "export_config.yml": {'export': vars(ExportConfig())},
        }

        for file_name, content in defaults.items():
            config_path = self.config_dir / file_name
            if config_path.exists():
                continue
            try:
                self.config_dir.mkdir(parents=True, exist_ok=True)
                with open(config_path, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(content, f, default_flow_style=False, indent=2, sort_keys=False)
                self.logger.info(f"Created default config at {config_path}")
            except OSError as e:
                self.logger.error(f"Failed to create default config {config_path}: {e}")
