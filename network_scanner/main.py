"""
Main entry point for the Network Scanner.

This module provides the command-line interface for the scanner, including
argument parsing, pre-flight checks, report generation and graceful shutdown
handling.
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config.config_loader import ConfigLoader
from .core.data_models import ScanRecord, ScanState
from .core.scanner_orchestrator import ScanOrchestrator
from .core.vendor_lookup import VendorLookup
from .utils.error_handler import ErrorHandler, ExportError, ParseError, ToolValidator
from .utils.logger import LogLevel, get_logger, set_log_level
from .utils.result_exporter import ExportFormat, ResultExporter

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_SUBNET = 2
EXIT_CANCELLED = 130

RESULT_TABLE_HEADERS = ["Address", "Hostname", "MAC Address", "Vendor", "Device Type", "Open Ports", "Latency"]
RESULT_TABLE_WIDTHS = [15, 28, 17, 18, 16, 20, 8]


class NetworkScannerApp:
    """
    Main application class for the Network Scanner.

    Handles CLI interface, pre-flight checks, and application lifecycle.
    """

    def __init__(self):
        """Initialize the application."""
        self.logger = get_logger(__name__)
        self.error_handler = ErrorHandler(self.logger)
        self.orchestrator: Optional[ScanOrchestrator] = None
        self.shutdown_requested = False

    def _install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame) -> None:
        """
        Handle shutdown signals.

        The first signal cancels the running scan cooperatively; the partial
        results are still reported. A second signal exits immediately.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_names = {signal.SIGINT: "SIGINT", signal.SIGTERM: "SIGTERM"}
        signal_name = signal_names.get(signum, f"Signal {signum}")

        if not self.shutdown_requested:
            self.logger.warning(f"Received {signal_name} - cancelling scan (repeat to force exit)...")
            self.shutdown_requested = True
            if self.orchestrator is not None:
                self.orchestrator.cancel()
        else:
            self.logger.error("Force shutdown requested - terminating immediately")
            sys.exit(EXIT_CANCELLED)

    def _perform_preflight_checks(self) -> bool:
        """
        Perform pre-flight checks for required external tools.

        Returns:
            bool: True if all checks pass, False otherwise
        """
        self.logger.section("PRE-FLIGHT CHECKS")

        validator = ToolValidator(self.error_handler)
        all_checks_passed, missing = validator.validate_all_tools()

        if "reachability" not in missing:
            self.logger.info("Checking that ping can be executed...")
            if not validator.check_ping_permissions():
                all_checks_passed = False

        if all_checks_passed:
            self.logger.success("All pre-flight checks passed")
        else:
            self.logger.error("Some pre-flight checks failed - see messages above")

        return all_checks_passed

    def _on_progress(self, percent: int, message: str) -> None:
        self.logger.progress_update(f"[{percent:3d}%] {message}")

    def _print_results(self, record: ScanRecord) -> None:
        online = record.online_hosts()
        self.logger.section(f"ONLINE HOSTS ({len(online)})")
        if not online:
            self.logger.info("No hosts answered")
            return

        self.logger.table_header(RESULT_TABLE_HEADERS, RESULT_TABLE_WIDTHS)
        for host in online:
            ports = ",".join(str(port) for port in host.open_ports) or "-"
            latency = f"{host.latency_ms} ms" if host.latency_ms is not None else "-"
            self.logger.table_row(
                [host.address, host.hostname, host.mac_address or "-", host.vendor,
                 host.device_type.value, ports, latency],
                RESULT_TABLE_WIDTHS,
                highlight=bool(host.open_ports),
            )

    def _write_reports(self, record: ScanRecord, exporter: ResultExporter,
                       formats: List[str], output_dir: Path) -> bool:
        all_written = True
        for fmt in formats:
            try:
                exporter.write_report(record, fmt, output_dir)
            except ExportError as e:
                self.logger.error(f"Could not export {fmt} report: {e}")
                all_written = False
        return all_written

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the network scanner application.

        Args:
            args: Parsed command line arguments

        Returns:
            int: Exit code (0 completed, 1 failure, 2 invalid subnet, 130 cancelled)
        """
        self._install_signal_handlers()
        try:
            if args.skip_checks:
                self.logger.warning("Skipping pre-flight checks as requested")
            elif not self._perform_preflight_checks():
                self.logger.error("Pre-flight checks failed. Use --skip-checks to bypass.")
                return EXIT_FAILURE

            config_loader = ConfigLoader(args.config_dir, self.logger)
            scan_config = config_loader.load_scan_config()
            port_config = config_loader.load_port_config()
            export_config = config_loader.load_export_config()

            formats = args.formats or export_config.formats
            for fmt in formats:
                ExportFormat.parse(fmt)
            output_dir = Path(args.output_dir or export_config.output_dir)

            self.orchestrator = ScanOrchestrator(
                config=scan_config,
                port_config=port_config,
                vendor_lookup=VendorLookup(export_config.extra_vendors),
                logger=self.logger,
                error_handler=self.error_handler,
            )

            if self.shutdown_requested:
                self.logger.info("Shutdown requested before scan start")
                return EXIT_CANCELLED

            record = self.orchestrator.scan(
                args.subnet,
                timeout_ms=args.timeout_ms,
                max_concurrent_probes=args.max_concurrent,
                enable_port_scan=False if args.no_port_scan else None,
                max_concurrent_enrichment=args.max_enrichment,
                progress_callback=self._on_progress,
            )

            self._print_results(record)
            exporter = ResultExporter(
                str(output_dir), export_config.csv_port_delimiter, logger=self.logger
            )
            reports_written = self._write_reports(record, exporter, formats, output_dir)

            if record.state == ScanState.CANCELLED:
                self.logger.warning("Scan was cancelled - reports contain partial results")
                return EXIT_CANCELLED
            if not reports_written:
                return EXIT_FAILURE

            self.logger.success("Network scan completed successfully!")
            return EXIT_OK

        except ParseError as e:
            self.logger.error(str(e))
            return EXIT_INVALID_SUBNET
        except ExportError as e:
            self.logger.error(str(e))
            return EXIT_FAILURE
        except KeyboardInterrupt:
            self.logger.warning("Scan interrupted by user")
            return EXIT_CANCELLED


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="network_scanner",
        description="Network Scanner - concurrent host discovery with device fingerprinting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m network_scanner 192.168.1.0/24                      # Scan with default settings
  python -m network_scanner 10.0.0.0/24 --no-port-scan          # Reachability and naming only
  python -m network_scanner 10.0.0.0/24 --format csv xml        # Choose report formats
  python -m network_scanner 10.0.0.0/22 --max-concurrent 100    # Raise the probe concurrency
        """
    )

    parser.add_argument(
        "subnet",
        help="Subnet to scan in CIDR notation, e.g. 192.168.1.0/24"
    )

    parser.add_argument(
        "--timeout-ms",
        type=int,
        help="Reachability probe timeout per address in milliseconds (default from scan_config.yml)"
    )

    parser.add_argument(
        "--max-concurrent",
        type=int,
        help="Maximum probes in flight at once (default from scan_config.yml)"
    )

    parser.add_argument(
        "--max-enrichment",
        type=int,
        help="Maximum online hosts enriched at once (default from scan_config.yml)"
    )

    parser.add_argument(
        "--no-port-scan",
        action="store_true",
        help="Skip the TCP port scan of online hosts"
    )

    parser.add_argument(
        "--format",
        dest="formats",
        nargs="+",
        metavar="FMT",
        help="Report formats to write: html, csv, json, xml (default from export_config.yml)"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        help="Directory for reports. Defaults to network_scanner/results/"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        help="Directory containing scan_config.yml, port_config.yml and export_config.yml. "
             "Defaults to network_scanner/config/"
    )

    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Skip pre-flight checks for external tools (ping, ip/arp)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Network Scanner {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Network Scanner.

    Returns:
        int: Exit code
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(LogLevel.DEBUG)

    app = NetworkScannerApp()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
