"""
Base scanner interface for the Network Scanner.

This module defines the abstract base class shared by the components that
touch the network on behalf of a scan (reachability prober, TCP port
scanner), providing a consistent logging interface and target validation.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..utils.logger import Logger, get_logger
from ..utils.network_utils import is_valid_ip


class BaseScanner(ABC):
    """
    Abstract base class for network-facing scanners.

    Concrete scanners must be safe to call from many worker threads at once:
    they keep no per-call state on the instance.
    """

    scanner_type = "base"

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the base scanner.

        Args:
            logger: Logger instance for outputting scan progress and errors
        """
        self.logger = logger or get_logger(self.__class__.__name__)

    @abstractmethod
    def scan_target(self, address: str, **options: Any) -> Any:
        """
        Run this scanner against a single address.

        Args:
            address: IPv4 address to scan
            **options: Scanner specific options

        Returns:
            Scanner specific result
        """

    def _log_info(self, message: str) -> None:
        self.logger.info(f"[{self.scanner_type}] {message}")

    def _log_warning(self, message: str) -> None:
        self.logger.warning(f"[{self.scanner_type}] {message}")

    def _log_error(self, message: str) -> None:
        self.logger.error(f"[{self.scanner_type}] {message}")

    def _log_debug(self, message: str) -> None:
        self.logger.debug(f"[{self.scanner_type}] {message}")

    def _require_valid_target(self, address: str) -> str:
        """
        Validate a scan target.

        Args:
            address: IPv4 address to validate

        Returns:
            str: The stripped address

        Raises:
            ValueError: If the address is not a valid IPv4 address
        """
        if not isinstance(address, str) or not is_valid_ip(address.strip()):
            raise ValueError(f"Invalid scan target: {address!r}")
        return address.strip()
