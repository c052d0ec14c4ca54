"""
Result export for the Network Scanner.

This module serializes a ScanRecord to HTML, CSV, JSON or XML, writes the
reports with timestamp based file naming and collision handling, and reads
the XML form back into a ScanRecord.
"""

import csv
import io
import json
import xml.etree.ElementTree as ET
from datetime import datetime
from enum import Enum
from html import escape
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.address_range import parse_subnet
from ..core.data_models import DeviceType, HostRecord, HostStatus, ScanRecord, ScanState
from .error_handler import (
    ErrorContext,
    ErrorSeverity,
    ErrorType,
    ExportError,
    NetworkScannerError,
    UnsupportedFormatError,
    WriteError,
)
from .logger import Logger, get_logger

NO_OPEN_PORTS = "None detected"

CSV_FIELDS = [
    "address",
    "status",
    "hostname",
    "mac_address",
    "vendor",
    "device_type",
    "open_ports",
    "latency_ms",
    "last_seen",
]


class ExportFormat(Enum):
    """Supported report formats; the value doubles as the file extension."""
    HTML = "html"
    CSV = "csv"
    JSON = "json"
    XML = "xml"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def parse(cls, fmt: Union[str, "ExportFormat"]) -> "ExportFormat":
        """
        Resolve a format name case-insensitively.

        Raises:
            UnsupportedFormatError: If the format is not known
        """
        if isinstance(fmt, cls):
            return fmt
        try:
            return cls(str(fmt).strip().lower())
        except ValueError:
            supported = ", ".join(f.value for f in cls)
            raise UnsupportedFormatError(
                f"Unsupported export format '{fmt}' (supported: {supported})"
            ) from None


class ResultExporter:
    """
    Serializes scan records.

    Exporting only reads the record, so one exporter can produce several
    formats of the same record concurrently.
    """

    def __init__(self, output_directory: str = "network_scanner/results",
                 csv_port_delimiter: str = ";", logger: Optional[Logger] = None):
        """
        Initialize the exporter.

        Args:
            output_directory: Default directory for write_report()
            csv_port_delimiter: Separator between open ports in CSV cells
            logger: Logger instance (optional)
        """
        self.output_directory = Path(output_directory)
        self.csv_port_delimiter = csv_port_delimiter
        self.logger = logger or get_logger(__name__)

    def export(self, record: ScanRecord, fmt: Union[str, ExportFormat]) -> bytes:
        """
        Serialize a scan record.

        Args:
            record: Scan record to serialize
            fmt: Target format, as ExportFormat or case-insensitive name

        Returns:
            bytes: UTF-8 encoded document

        Raises:
            UnsupportedFormatError: If the format is not known
        """
        export_format = ExportFormat.parse(fmt)
        if export_format == ExportFormat.HTML:
            return self.to_html(record).encode("utf-8")
        if export_format == ExportFormat.CSV:
            return self.to_csv(record).encode("utf-8")
        if export_format == ExportFormat.JSON:
            return self.to_json(record).encode("utf-8")
        return self.to_xml(record)

    def write(self, record: ScanRecord, fmt: Union[str, ExportFormat],
              path: Union[str, Path]) -> Path:
        """
        Serialize a scan record to a file.

        Args:
            record: Scan record to serialize
            fmt: Target format
            path: Destination file; parent directories are created

        Returns:
            Path: The written file

        Raises:
            UnsupportedFormatError: If the format is not known
            WriteError: If the file cannot be written
        """
        content = self.export(record, fmt)
        filepath = Path(path)

        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(content)
        except OSError as e:
            context = ErrorContext(
                error_type=ErrorType.EXPORT_ERROR,
                severity=ErrorSeverity.HIGH,
                operation="write",
                component="ResultExporter",
                additional_info={"path": str(filepath)},
            )
            self.logger.error(f"Failed to write report to {filepath}: {e}")
            raise WriteError(f"Cannot write {filepath}: {e}", context) from e

        self.logger.info(f"{ExportFormat.parse(fmt).name} report successfully generated: {filepath}")
        return filepath

    def write_report(self, record: ScanRecord, fmt: Union[str, ExportFormat],
                     output_dir: Optional[Union[str, Path]] = None) -> Path:
        """
        Write a report under a generated, non-colliding file name.

        Args:
            record: Scan record to serialize
            fmt: Target format
            output_dir: Directory for the report; defaults to output_directory

        Returns:
            Path: The written file
        """
        export_format = ExportFormat.parse(fmt)
        directory = Path(output_dir) if output_dir is not None else self.output_directory
        filepath = self._handle_file_collision(
            directory / self._generate_filename(record.start_time, export_format)
        )
        return self.write(record, export_format, filepath)

    def _generate_filename(self, timestamp: datetime, export_format: ExportFormat) -> str:
        # Format: network_scan_YYYYMMDD_HHMMSS.<ext>
        timestamp_str = timestamp.strftime("%Y%m%d_%H%M%S")
        return f"network_scan_{timestamp_str}.{export_format.extension}"

    def _handle_file_collision(self, filepath: Path) -> Path:
        """
        Handle filename collisions by adding incremental suffix.

        Args:
            filepath: Original file path

        Returns:
            Path: Unique file path

        Raises:
            WriteError: If every suffix up to 999 is taken
        """
        if not filepath.exists():
            return filepath

        base_name = filepath.stem
        extension = filepath.suffix

        for counter in range(1, 1000):
            new_filepath = filepath.parent / f"{base_name}_{counter:03d}{extension}"
            if not new_filepath.exists():
                self.logger.info(f"File collision detected, using filename: {new_filepath.name}")
                return new_filepath

        raise WriteError(f"Too many file collisions for {filepath}")

    def _format_ports(self, host: HostRecord, delimiter: str) -> str:
        return delimiter.join(str(port) for port in host.open_ports)

    def to_csv(self, record: ScanRecord) -> str:
        """One header row plus one row per host, in numeric address order."""
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDS, lineterminator="\n")
        writer.writeheader()
        for host in record.sorted_hosts():
            writer.writerow({
                "address": host.address,
                "status": host.status.value,
                "hostname": host.hostname,
                "mac_address": host.mac_address,
                "vendor": host.vendor,
                "device_type": host.device_type.value,
                "open_ports": self._format_ports(host, self.csv_port_delimiter),
                "latency_ms": "" if host.latency_ms is None else host.latency_ms,
                "last_seen": host.last_seen.isoformat() if host.last_seen else "",
            })
        return buffer.getvalue()

    def _summary(self, record: ScanRecord) -> Dict[str, Any]:
        return {
            "subnet": str(record.subnet),
            "state": record.state.value,
            "start_time": record.start_time.isoformat(),
            "end_time": record.end_time.isoformat() if record.end_time else None,
            "duration": round(record.duration, 3),
            "total_addresses": record.total_addresses,
            "total_probed": record.total_probed,
            "online_count": record.online_count,
            "offline_count": record.offline_count,
        }

    def to_json(self, record: ScanRecord) -> str:
        """Full structural dump of the record."""
        data = {
            "summary": self._summary(record),
            "settings": dict(record.settings),
            "hosts": [host.to_dict() for host in record.sorted_hosts()],
            "errors": list(record.errors),
        }
        return json.dumps(data, indent=2, ensure_ascii=False, default=str)

    def to_xml(self, record: ScanRecord) -> bytes:
        """
        XML document rooted at <network_scan>.

        Layout: <summary> with one child per counter, <settings> with one
        <setting name=".."> per request parameter, <hosts> with one <host>
        per record, and <errors>.
        """
        root = ET.Element("network_scan")

        summary_elem = ET.SubElement(root, "summary")
        for key, value in self._summary(record).items():
            ET.SubElement(summary_elem, key).text = "" if value is None else str(value)

        settings_elem = ET.SubElement(root, "settings")
        for key, value in record.settings.items():
            setting = ET.SubElement(settings_elem, "setting", name=key)
            setting.text = str(value).lower() if isinstance(value, bool) else str(value)

        hosts_elem = ET.SubElement(root, "hosts")
        for host in record.sorted_hosts():
            host_elem = ET.SubElement(hosts_elem, "host")
            ET.SubElement(host_elem, "address").text = host.address
            ET.SubElement(host_elem, "status").text = host.status.value
            ET.SubElement(host_elem, "latency_ms").text = (
                "" if host.latency_ms is None else str(host.latency_ms)
            )
            ET.SubElement(host_elem, "hostname").text = host.hostname
            ET.SubElement(host_elem, "mac_address").text = host.mac_address
            ET.SubElement(host_elem, "vendor").text = host.vendor
            ET.SubElement(host_elem, "device_type").text = host.device_type.value
            ports_elem = ET.SubElement(host_elem, "open_ports")
            for port in host.open_ports:
                ET.SubElement(ports_elem, "port").text = str(port)
            ET.SubElement(host_elem, "last_seen").text = (
                host.last_seen.isoformat() if host.last_seen else ""
            )

        errors_elem = ET.SubElement(root, "errors")
        for error in record.errors:
            ET.SubElement(errors_elem, "error").text = error

        ET.indent(root)
        return ET.tostring(root, encoding="utf-8", xml_declaration=True)

    def to_html(self, record: ScanRecord) -> str:
        """Self-contained HTML report with summary cards and the host table."""
        generated = datetime.now()
        end_time = record.end_time.strftime("%Y-%m-%d %H:%M:%S") if record.end_time else "-"

        html_content = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Network Scan Report - {escape(str(record.subnet))}</title>
    <style>
        body {{ font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; margin: 0; background: #f5f7fa; }}
        .container {{ max-width: 1200px; margin: 0 auto; padding: 20px; }}
        .header {{ background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; border-radius: 10px; margin-bottom: 30px; }}
        .header h1 {{ margin: 0; font-size: 2.2em; }}
        .header .subtitle {{ opacity: 0.9; margin-top: 10px; }}
        .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 20px; margin-bottom: 30px; }}
        .stat-card {{ background: white; padding: 20px; border-radius: 10px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); text-align: center; }}
        .stat-number {{ font-size: 2em; font-weight: bold; color: #667eea; }}
        .stat-label {{ color: #666; margin-top: 5px; }}
        .results-table {{ width: 100%; border-collapse: collapse; background: white; border-radius: 10px; overflow: hidden; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
        .results-table th {{ background: #f8f9fa; padding: 12px; text-align: left; font-weight: 600; }}
        .results-table td {{ padding: 12px; border-bottom: 1px solid #eee; }}
        tr.status-online {{ background: #e9f7ef; }}
        tr.status-offline {{ background: #fbeaea; color: #777; }}
        tr.status-unknown {{ background: #fff8e1; }}
        .badge-online {{ color: #28a745; font-weight: bold; }}
        .badge-offline {{ color: #dc3545; }}
        .badge-unknown {{ color: #ffc107; }}
        .no-ports {{ color: #999; font-style: italic; }}
        .errors {{ background: white; margin-top: 30px; padding: 20px; border-radius: 10px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
        .footer {{ text-align: center; margin-top: 30px; color: #666; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Network Scan Report</h1>
            <div class="subtitle">Subnet {escape(str(record.subnet))} | Started {record.start_time.strftime('%Y-%m-%d %H:%M:%S')} | Finished {end_time} | State {escape(record.state.value)}</div>
        </div>

        <div class="summary">
            <div class="stat-card">
                <div class="stat-number">{record.total_addresses}</div>
                <div class="stat-label">Addresses</div>
            </div>
            <div class="stat-card">
                <div class="stat-number">{record.total_probed}</div>
                <div class="stat-label">Probed</div>
            </div>
            <div class="stat-card">
                <div class="stat-number">{record.online_count}</div>
                <div class="stat-label">Online</div>
            </div>
            <div class="stat-card">
                <div class="stat-number">{record.offline_count}</div>
                <div class="stat-label">Offline</div>
            </div>
            <div class="stat-card">
                <div class="stat-number">{record.duration:.1f}s</div>
                <div class="stat-label">Duration</div>
            </div>
        </div>

        <table class="results-table">
            <thead>
                <tr>
                    <th>Address</th>
                    <th>Status</th>
                    <th>Hostname</th>
                    <th>MAC Address</th>
                    <th>Vendor</th>
                    <th>Device Type</th>
                    <th>Open Ports</th>
                    <th>Latency</th>
                </tr>
            </thead>
            <tbody>
"""

        for host in record.sorted_hosts():
            status_class = host.status.value.lower()
            if host.open_ports:
                ports_cell = escape(", ".join(str(port) for port in host.open_ports))
            else:
                ports_cell = f'<span class="no-ports">{NO_OPEN_PORTS}</span>'
            latency = f"{host.latency_ms} ms" if host.latency_ms is not None else "-"

            html_content += f"""                <tr class="status-{status_class}">
                    <td>{escape(host.address)}</td>
                    <td class="badge-{status_class}">{escape(host.status.value)}</td>
                    <td>{escape(host.hostname)}</td>
                    <td>{escape(host.mac_address) or "-"}</td>
                    <td>{escape(host.vendor)}</td>
                    <td>{escape(host.device_type.value)}</td>
                    <td>{ports_cell}</td>
                    <td>{latency}</td>
                </tr>
"""

        html_content += """            </tbody>
        </table>
"""

        if record.errors:
            items = "".join(f"                <li>{escape(error)}</li>\n" for error in record.errors)
            html_content += f"""
        <div class="errors">
            <h2>Errors ({len(record.errors)})</h2>
            <ul>
{items}            </ul>
        </div>
"""

        html_content += f"""
        <div class="footer">Generated on {generated.strftime('%B %d, %Y at %I:%M %p')}</div>
    </div>
</body>
</html>
"""
        return html_content

    def load_xml(self, data: Union[bytes, str]) -> ScanRecord:
        """
        Rebuild a ScanRecord from the XML export.

        Args:
            data: Document produced by to_xml()

        Returns:
            ScanRecord: Reconstructed record

        Raises:
            ExportError: If the document is malformed
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ExportError(f"Malformed scan XML: {e}") from e

        if root.tag != "network_scan":
            raise ExportError(f"Unexpected root element <{root.tag}>, expected <network_scan>")

        summary = root.find("summary")
        if summary is None:
            raise ExportError("Scan XML has no <summary> element")

        try:
            record = ScanRecord(
                subnet=parse_subnet(self._text(summary, "subnet")),
                start_time=datetime.fromisoformat(self._text(summary, "start_time")),
                end_time=self._parse_time(self._text(summary, "end_time")),
                state=ScanState(self._text(summary, "state")),
                total_addresses=int(self._text(summary, "total_addresses") or 0),
                settings=self._parse_settings(root.find("settings")),
            )

            for host_elem in root.iterfind("hosts/host"):
                host = self._parse_host(host_elem)
                record.hosts[host.address] = host
        except (TypeError, ValueError, NetworkScannerError) as e:
            raise ExportError(f"Invalid scan XML: {e}") from e

        record.errors = [error.text or "" for error in root.iterfind("errors/error")]
        record.recount()
        return record

    @staticmethod
    def _text(parent: ET.Element, tag: str) -> str:
        return (parent.findtext(tag) or "").strip()

    @staticmethod
    def _parse_time(value: str) -> Optional[datetime]:
        return datetime.fromisoformat(value) if value else None

    def _parse_settings(self, settings_elem: Optional[ET.Element]) -> Dict[str, Any]:
        settings: Dict[str, Any] = {}
        if settings_elem is None:
            return settings
        for setting in settings_elem.iterfind("setting"):
            value = (setting.text or "").strip()
            if value in ("true", "false"):
                settings[setting.get("name")] = value == "true"
            elif value.isascii() and value.isdigit():
                settings[setting.get("name")] = int(value)
            else:
                settings[setting.get("name")] = value
        return settings

    def _parse_host(self, host_elem: ET.Element) -> HostRecord:
        latency = self._text(host_elem, "latency_ms")
        ports: List[int] = [int(port.text) for port in host_elem.iterfind("open_ports/port")]
        return HostRecord(
            address=self._text(host_elem, "address"),
            status=HostStatus(self._text(host_elem, "status")),
            latency_ms=int(latency) if latency else None,
            hostname=self._text(host_elem, "hostname"),
            mac_address=self._text(host_elem, "mac_address"),
            vendor=self._text(host_elem, "vendor") or "Unknown",
            device_type=DeviceType(self._text(host_elem, "device_type")),
            open_ports=sorted(ports),
            last_seen=self._parse_time(self._text(host_elem, "last_seen")),
        )
