"""
Scan Orchestrator for the Network Scanner.

This module provides the ScanOrchestrator class that owns the lifecycle of a
scan: it expands the subnet, probes every usable address under a concurrency
cap, enriches the hosts that answered under a second cap, reports progress
and returns the aggregated ScanRecord.
"""

import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Callable, Dict, Iterator, Optional, Union

from .address_range import iter_hosts, parse_subnet
from .data_models import HostRecord, HostStatus, ScanRecord, ScanState, SubnetSpec
from .device_classifier import DeviceClassifier
from .vendor_lookup import VendorLookup
from ..config.config_loader import PortScanConfig, ScanConfig
from ..scanners.enrichment import EnrichmentResolver
from ..scanners.hostname_resolver import HostnameResolver
from ..scanners.neighbor_table import NeighborTableReader
from ..scanners.ping_prober import ReachabilityProber
from ..scanners.port_scanner import TcpPortScanner
from ..utils.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    ParseError,
)
from ..utils.logger import Logger, get_logger

ProgressCallback = Callable[[int, str], None]

# Share of the progress bar covered by the probing phase
PROBE_PROGRESS_SHARE = 80
# Highest value reported before the scan is completed
MAX_INTERMEDIATE_PROGRESS = 99


class _ProgressReporter:
    """
    Forwards progress events to a caller supplied callback.

    Values never decrease, stay at or below 99 until complete() sends 100,
    and nothing is sent once the scan has been cancelled.
    """

    def __init__(self, callback: Optional[ProgressCallback], cancel_event: threading.Event,
                 error_handler: ErrorHandler):
        self.callback = callback
        self.cancel_event = cancel_event
        self.error_handler = error_handler
        self.last_percent = 0
        self.completed = False

    def report(self, percent: int, message: str) -> None:
        percent = max(self.last_percent, min(int(percent), MAX_INTERMEDIATE_PROGRESS))
        self._send(percent, message)

    def complete(self, message: str) -> None:
        if self.completed:
            return
        self.completed = True
        self._send(100, message)

    def _send(self, percent: int, message: str) -> None:
        if self.callback is None or self.cancel_event.is_set():
            return
        self.last_percent = percent
        try:
            self.callback(percent, message)
        except Exception as e:
            context = ErrorContext(
                error_type=ErrorType.CALLBACK_ERROR,
                severity=ErrorSeverity.MEDIUM,
                operation="progress_callback",
                component="ScanOrchestrator",
                additional_info={"percent": percent},
            )
            self.error_handler.handle_error(e, context)


class ScanOrchestrator:
    """
    Orchestrates a complete network scan.

    Probes are dispatched through a sliding window: at most
    max_concurrent_probes are in flight and the next address is dispatched
    as soon as one completes. The orchestrator thread is the only writer of
    the host map; workers return new HostRecords instead of mutating shared
    ones. One instance runs one scan at a time.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        port_config: Optional[PortScanConfig] = None,
        prober: Optional[ReachabilityProber] = None,
        neighbor_table_reader: Optional[NeighborTableReader] = None,
        hostname_resolver: Optional[HostnameResolver] = None,
        port_scanner: Optional[TcpPortScanner] = None,
        vendor_lookup: Optional[VendorLookup] = None,
        classifier: Optional[DeviceClassifier] = None,
        logger: Optional[Logger] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Initialize the scan orchestrator.

        Args:
            config: Default scan parameters
            port_config: Port scan settings used to build the default port scanner
            prober: Reachability prober (optional)
            neighbor_table_reader: Source of the neighbor table snapshot (optional)
            hostname_resolver: Reverse DNS resolver (optional)
            port_scanner: TCP port scanner (optional)
            vendor_lookup: OUI vendor table (optional)
            classifier: Device type classifier (optional)
            logger: Logger instance (optional)
            error_handler: ErrorHandler recording absorbed errors (optional)
        """
        self.logger = logger or get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)
        self.config = config or ScanConfig()
        port_config = port_config or PortScanConfig()

        self.prober = prober or ReachabilityProber(self.logger)
        self.neighbor_table_reader = neighbor_table_reader or NeighborTableReader(self.logger)
        self.hostname_resolver = hostname_resolver or HostnameResolver(
            timeout=self.config.dns_timeout, logger=self.logger
        )
        self.port_scanner = port_scanner or TcpPortScanner(
            ports=port_config.ports,
            connect_timeout=port_config.connect_timeout,
            max_workers=port_config.max_workers_per_host,
            logger=self.logger,
        )
        self.vendor_lookup = vendor_lookup or VendorLookup()
        self.classifier = classifier or DeviceClassifier()

        self._state = ScanState.IDLE
        self._state_lock = threading.Lock()
        self._cancel_event = threading.Event()

    @property
    def state(self) -> ScanState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: ScanState, record: Optional[ScanRecord] = None) -> None:
        with self._state_lock:
            self._state = state
        if record is not None:
            record.state = state
        self.logger.debug(f"Scan state -> {state.value}")

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """
        Request cooperative cancellation of the running scan.

        Work already in flight is allowed to finish; nothing new is
        dispatched and no further progress is reported.
        """
        if not self._cancel_event.is_set():
            self.logger.warning("Scan cancellation requested")
        self._cancel_event.set()

    def scan(
        self,
        subnet: Union[str, SubnetSpec],
        timeout_ms: Optional[int] = None,
        max_concurrent_probes: Optional[int] = None,
        enable_port_scan: Optional[bool] = None,
        max_concurrent_enrichment: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> ScanRecord:
        """
        Scan every usable address of a subnet.

        Args:
            subnet: Subnet in CIDR notation, or an already parsed SubnetSpec
            timeout_ms: Probe timeout per address
            max_concurrent_probes: Maximum probes in flight at any instant
            enable_port_scan: Whether online hosts get a TCP port scan
            max_concurrent_enrichment: Maximum enrichments in flight
            progress_callback: Called with (percent, message) on this thread

        Returns:
            ScanRecord: Completed record, or a partial one with state
                Cancelled when cancel() was called

        Raises:
            ParseError: If the subnet is not valid CIDR notation
        """
        self._cancel_event.clear()
        start_time = datetime.now()

        if max_concurrent_probes is None:
            max_concurrent_probes = self.config.max_concurrent_probes
        if max_concurrent_enrichment is None:
            max_concurrent_enrichment = self.config.max_concurrent_enrichment

        # Caps below 1 are raised to 1
        settings = {
            "timeout_ms": timeout_ms if timeout_ms is not None else self.config.timeout_ms,
            "max_concurrent_probes": max(1, max_concurrent_probes),
            "max_concurrent_enrichment": max(1, max_concurrent_enrichment),
            "enable_port_scan": enable_port_scan if enable_port_scan is not None else self.config.enable_port_scan,
        }

        self._set_state(ScanState.EXPANDING)
        try:
            subnet_spec = subnet if isinstance(subnet, SubnetSpec) else parse_subnet(subnet)
        except ParseError as e:
            self._set_state(ScanState.FAILED)
            self.logger.error(f"Scan aborted: {e}")
            raise

        record = ScanRecord(
            subnet=subnet_spec,
            start_time=start_time,
            state=ScanState.EXPANDING,
            total_addresses=subnet_spec.host_count,
            settings=settings,
        )
        progress = _ProgressReporter(progress_callback, self._cancel_event, self.error_handler)

        self.logger.section("NETWORK SCAN")
        self.logger.scan_target(str(subnet_spec), subnet_spec.host_count, settings)

        self._set_state(ScanState.PROBING, record)
        self._run_probes(record, iter_hosts(subnet_spec), settings, progress)

        if not self.cancel_requested:
            self._set_state(ScanState.ENRICHING, record)
            self._run_enrichment(record, settings, progress)

        return self._finalize(record, progress)

    def _run_probes(self, record: ScanRecord, addresses: Iterator, settings: Dict,
                    progress: _ProgressReporter) -> None:
        """Probe every address through a sliding window of in-flight probes."""
        total = record.total_addresses
        cap = settings["max_concurrent_probes"]
        timeout_ms = settings["timeout_ms"]
        in_flight: Dict[Future, str] = {}
        completed = 0
        exhausted = False

        self.logger.progress_start(f"Probing {total} addresses ({cap} concurrent)")

        with ThreadPoolExecutor(max_workers=cap, thread_name_prefix="probe") as executor:
            while True:
                while not exhausted and len(in_flight) < cap and not self.cancel_requested:
                    address = next(addresses, None)
                    if address is None:
                        exhausted = True
                        break
                    address = str(address)
                    record.hosts[address] = HostRecord(address=address)
                    in_flight[executor.submit(self.prober.probe, address, timeout_ms)] = address

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    address = in_flight.pop(future)
                    record.hosts[address] = self._probe_result(record, future, address)
                    completed += 1
                    status = record.hosts[address].status.value
                    progress.report(
                        completed * PROBE_PROGRESS_SHARE // max(total, 1),
                        f"Probed {address}: {status} ({completed}/{total})",
                    )

        record.recount()
        self.logger.progress_end(
            f"Probing finished: {record.online_count} online, "
            f"{record.offline_count} offline of {record.total_probed} probed"
        )

    def _probe_result(self, record: ScanRecord, future: Future, address: str) -> HostRecord:
        try:
            return future.result()
        except Exception as e:
            context = ErrorContext(
                error_type=ErrorType.PROBE_ERROR,
                severity=ErrorSeverity.MEDIUM,
                operation="probe",
                component="ScanOrchestrator",
                additional_info={"address": address},
            )
            record.errors.append(self.error_handler.handle_error(e, context))
            return HostRecord(address=address, status=HostStatus.OFFLINE)

    def _run_enrichment(self, record: ScanRecord, settings: Dict,
                        progress: _ProgressReporter) -> None:
        """Enrich the online hosts under their own concurrency cap."""
        online = record.online_hosts()
        if not online:
            self.logger.info("No online hosts to enrich")
            return

        cap = settings["max_concurrent_enrichment"]
        resolver = EnrichmentResolver(
            neighbor_table=self.neighbor_table_reader.snapshot(),
            hostname_resolver=self.hostname_resolver,
            port_scanner=self.port_scanner if settings["enable_port_scan"] else None,
            vendor_lookup=self.vendor_lookup,
            classifier=self.classifier,
            logger=self.logger,
            error_handler=self.error_handler,
        )

        pending = iter(online)
        total = len(online)
        span = MAX_INTERMEDIATE_PROGRESS - PROBE_PROGRESS_SHARE
        in_flight: Dict[Future, HostRecord] = {}
        completed = 0
        exhausted = False

        self.logger.progress_start(f"Enriching {total} online hosts ({cap} concurrent)")

        with ThreadPoolExecutor(max_workers=cap, thread_name_prefix="enrich") as executor:
            while True:
                while not exhausted and len(in_flight) < cap and not self.cancel_requested:
                    host = next(pending, None)
                    if host is None:
                        exhausted = True
                        break
                    in_flight[executor.submit(resolver.enrich_with_errors, host)] = host

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    host = in_flight.pop(future)
                    self._apply_enrichment(record, future, host)
                    completed += 1
                    progress.report(
                        PROBE_PROGRESS_SHARE + completed * span // total,
                        f"Enriched {host.address} ({completed}/{total})",
                    )

        self.logger.progress_end(f"Enrichment finished for {completed} hosts")

    def _apply_enrichment(self, record: ScanRecord, future: Future, host: HostRecord) -> None:
        try:
            enriched, errors = future.result()
        except Exception as e:
            context = ErrorContext(
                error_type=ErrorType.ENRICHMENT_ERROR,
                severity=ErrorSeverity.MEDIUM,
                operation="enrich",
                component="ScanOrchestrator",
                additional_info={"address": host.address},
            )
            record.errors.append(self.error_handler.handle_error(e, context))
            return
        record.hosts[host.address] = enriched
        record.errors.extend(errors)

    def _finalize(self, record: ScanRecord, progress: _ProgressReporter) -> ScanRecord:
        record.end_time = datetime.now()
        record.recount()

        if self.cancel_requested:
            self._set_state(ScanState.CANCELLED, record)
            self.logger.warning(
                f"Scan cancelled after {record.total_probed} of "
                f"{record.total_addresses} addresses ({record.duration:.1f}s)"
            )
            return record

        self._set_state(ScanState.COMPLETED, record)
        progress.complete(
            f"Scan completed: {record.online_count} online of {record.total_addresses}"
        )
        self.logger.success(
            f"Scan of {record.subnet} completed in {record.duration:.1f}s: "
            f"{record.online_count} online, {record.offline_count} offline"
        )
        if record.errors:
            self.logger.warning(f"{len(record.errors)} errors were absorbed during the scan")
        return record
