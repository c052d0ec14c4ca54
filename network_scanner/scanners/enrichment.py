"""
Host enrichment for the Network Scanner.

Fills in hostname, MAC address, vendor, open ports and device type for a host
that answered its reachability probe. Every field degrades independently to
its default: a failed DNS lookup never prevents the port scan, a failed port
scan never prevents classification.
"""

from dataclasses import replace
from typing import List, Mapping, Optional, Tuple

from .hostname_resolver import HostnameResolver
from .port_scanner import TcpPortScanner
from ..core.data_models import HostRecord
from ..core.device_classifier import DeviceClassifier
from ..core.vendor_lookup import VendorLookup, UNKNOWN_VENDOR
from ..utils.error_handler import ErrorHandler, ErrorContext, ErrorType, ErrorSeverity
from ..utils.logger import Logger, get_logger


class EnrichmentResolver:
    """
    Resolves the descriptive fields of an online host.

    One resolver is built per scan around that scan's neighbor table
    snapshot. enrich() never mutates the record it is given, so the resolver
    can serve every enrichment worker concurrently.
    """

    def __init__(
        self,
        neighbor_table: Mapping[str, str],
        hostname_resolver: Optional[HostnameResolver] = None,
        port_scanner: Optional[TcpPortScanner] = None,
        vendor_lookup: Optional[VendorLookup] = None,
        classifier: Optional[DeviceClassifier] = None,
        logger: Optional[Logger] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Initialize the resolver.

        Args:
            neighbor_table: Read-only IP -> MAC snapshot captured for this scan
            hostname_resolver: Reverse DNS resolver
            port_scanner: TCP port scanner; None disables port scanning
            vendor_lookup: OUI -> vendor table
            classifier: Device type classifier
            logger: Logger instance for diagnostics
            error_handler: ErrorHandler recording per-field failures
        """
        self.logger = logger or get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)
        self.neighbor_table = neighbor_table
        self.hostname_resolver = hostname_resolver or HostnameResolver(logger=self.logger)
        self.port_scanner = port_scanner
        self.vendor_lookup = vendor_lookup or VendorLookup()
        self.classifier = classifier or DeviceClassifier()

    def enrich(self, record: HostRecord) -> HostRecord:
        """
        Return an enriched copy of a host record.

        Args:
            record: Probed host record

        Returns:
            HostRecord: New record with descriptive fields filled in
        """
        enriched, _ = self.enrich_with_errors(record)
        return enriched

    def enrich_with_errors(self, record: HostRecord) -> Tuple[HostRecord, List[str]]:
        """
        Enrich a host record and report which fields fell back to defaults.

        Args:
            record: Probed host record

        Returns:
            Tuple of (enriched record, error descriptions)
        """
        address = record.address
        errors: List[str] = []

        hostname = self._guarded(errors, address, "hostname", address,
                                 lambda: self.hostname_resolver.resolve(address))
        mac_address = self._guarded(errors, address, "mac_address", "",
                                    lambda: self.neighbor_table.get(address, ""))
        vendor = self._guarded(errors, address, "vendor", UNKNOWN_VENDOR,
                               lambda: self.vendor_lookup.lookup(mac_address))

        open_ports: List[int] = []
        if self.port_scanner is not None:
            open_ports = self._guarded(errors, address, "open_ports", [],
                                       lambda: self.port_scanner.scan(address))

        device_type = self._guarded(errors, address, "device_type", self.classifier.default_type,
                                    lambda: self.classifier.classify(hostname, vendor, open_ports))

        return replace(
            record,
            hostname=hostname or address,
            mac_address=mac_address or "",
            vendor=vendor or UNKNOWN_VENDOR,
            open_ports=list(open_ports),
            device_type=device_type,
        ), errors

    def _guarded(self, errors: List[str], address: str, field_name: str, default, resolve):
        try:
            return resolve()
        except Exception as e:
            context = ErrorContext(
                error_type=ErrorType.ENRICHMENT_ERROR,
                severity=ErrorSeverity.LOW,
                operation=f"resolve_{field_name}",
                component="EnrichmentResolver",
                additional_info={"address": address, "field": field_name},
            )
            errors.append(self.error_handler.handle_error(e, context))
            return default
