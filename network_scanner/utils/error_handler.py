"""
Error handling and validation system for the Network Scanner.

This module provides the exception hierarchy used across the scanner,
centralized logging of errors that are absorbed into scan results (a host
that cannot be probed or enriched never aborts a scan), per-type error
statistics, external tool validation, and user-friendly troubleshooting
suggestions.
"""

import platform
import shutil
import subprocess
import threading
from typing import Optional, Any, Dict, List, Tuple
from enum import Enum
from dataclasses import dataclass, field

from .logger import Logger, get_logger


class ErrorType(Enum):
    """Enumeration for different types of errors."""
    PARSE_ERROR = "parse_error"
    PROBE_ERROR = "probe_error"
    ENRICHMENT_ERROR = "enrichment_error"
    PERMISSION_ERROR = "permission_error"
    TOOL_MISSING_ERROR = "tool_missing_error"
    CONFIGURATION_ERROR = "configuration_error"
    EXPORT_ERROR = "export_error"
    CALLBACK_ERROR = "callback_error"


class ErrorSeverity(Enum):
    """Enumeration for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """
    Context information for error handling.

    Attributes:
        error_type: Type of error that occurred
        severity: Severity level of the error
        operation: Operation that was being performed when error occurred
        component: Component/module where error occurred
        additional_info: Additional context information (address, field, path...)
    """
    error_type: ErrorType
    severity: ErrorSeverity
    operation: str
    component: str
    additional_info: Dict[str, Any] = field(default_factory=dict)


class NetworkScannerError(Exception):
    """Base exception class for the Network Scanner."""

    def __init__(self, message: str, error_context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.error_context = error_context


class ParseError(NetworkScannerError):
    """Raised when a subnet string is not valid CIDR notation."""
    pass


class ProbeDispatchError(NetworkScannerError):
    """Raised when a reachability probe cannot be started at all."""
    pass


class ConfigurationError(NetworkScannerError):
    """Exception for configuration-related errors."""
    pass


class ExportError(NetworkScannerError):
    """Base exception for failed exports; the scan record is unaffected."""
    pass


class UnsupportedFormatError(ExportError):
    """Raised when an export format is not known."""
    pass


class WriteError(ExportError):
    """Raised when an export destination cannot be written."""
    pass


class ErrorHandler:
    """
    Centralized handling of errors absorbed during a scan.

    Records per-type statistics, logs each error at a level matching its
    severity, and prints troubleshooting suggestions for the error types
    that need user action.
    """

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the ErrorHandler.

        Args:
            logger: Logger instance for error reporting
        """
        self.logger = logger or get_logger(__name__)
        self.error_statistics: Dict[ErrorType, int] = {
            error_type: 0 for error_type in ErrorType
        }
        self._lock = threading.Lock()

    def handle_error(self, error: Exception, context: ErrorContext) -> str:
        """
        Record and log an error.

        Args:
            error: The exception that occurred
            context: Error context information

        Returns:
            str: One-line description suitable for a scan's error list
        """
        with self._lock:
            self.error_statistics[context.error_type] += 1
        self._log_error(error, context)

        if context.error_type == ErrorType.TOOL_MISSING_ERROR:
            self._suggest_tool_installation(context.additional_info.get("tool_name", "unknown"))
        elif context.error_type == ErrorType.PERMISSION_ERROR:
            self._suggest_permission_solutions(context)
        elif context.error_type == ErrorType.CONFIGURATION_ERROR:
            self._suggest_configuration_fixes()
        elif context.error_type == ErrorType.EXPORT_ERROR:
            self._suggest_file_solutions()

        return self.describe(error, context)

    @staticmethod
    def describe(error: Exception, context: ErrorContext) -> str:
        target = context.additional_info.get("address")
        prefix = f"{target}: " if target else ""
        return f"{prefix}{context.component}.{context.operation} failed: {error}"

    def total_errors(self) -> int:
        return sum(self.error_statistics.values())

    def _log_error(self, error: Exception, context: ErrorContext) -> None:
        """
        Log error information with appropriate detail level.

        Args:
            error: The exception that occurred
            context: Error context information
        """
        error_msg = f"Error in {context.component}.{context.operation}: {str(error)}"

        if context.severity == ErrorSeverity.CRITICAL:
            self.logger.error(error_msg, exception=error)
        elif context.severity == ErrorSeverity.HIGH:
            self.logger.error(error_msg)
        elif context.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(error_msg)
        else:
            self.logger.debug(error_msg)

    def _suggest_permission_solutions(self, context: ErrorContext) -> None:
        """Provide permission error solutions."""
        self.logger.info("Permission error solutions:")
        if "ping" in context.operation.lower():
            self.logger.info("  • Some systems restrict ICMP to privileged users")
            self.logger.info("  • Run with sudo: sudo python -m network_scanner")
        else:
            self.logger.info("  • Run with elevated privileges (sudo)")
            self.logger.info("  • Check file/directory permissions")

    def _suggest_tool_installation(self, tool_name: str) -> None:
        """Provide tool installation suggestions."""
        suggestions = {
            "ping": [
                "Ubuntu/Debian: sudo apt-get install iputils-ping",
                "CentOS/RHEL: sudo yum install iputils",
                "Alpine: apk add iputils",
            ],
            "ip": [
                "Ubuntu/Debian: sudo apt-get install iproute2",
                "CentOS/RHEL: sudo yum install iproute",
            ],
            "arp": [
                "Ubuntu/Debian: sudo apt-get install net-tools",
                "CentOS/RHEL: sudo yum install net-tools",
            ],
        }

        if tool_name in suggestions:
            self.logger.info(f"Installation suggestions for {tool_name}:")
            for suggestion in suggestions[tool_name]:
                self.logger.info(f"  • {suggestion}")
        else:
            self.logger.info(f"Please install {tool_name} using your system's package manager")

    def _suggest_configuration_fixes(self) -> None:
        """Provide configuration error solutions."""
        self.logger.info("Configuration error solutions:")
        self.logger.info("  • Check YAML syntax and indentation")
        self.logger.info("  • Ensure configuration values are valid")
        self.logger.info("  • Use default configuration as reference")

    def _suggest_file_solutions(self) -> None:
        """Provide file system error solutions."""
        self.logger.info("File system error solutions:")
        self.logger.info("  • Check file and directory permissions")
        self.logger.info("  • Verify sufficient disk space")
        self.logger.info("  • Ensure parent directories exist")


class ToolValidator:
    """
    Validator for external tool availability.

    The scanner shells out to the platform ping for reachability probes and
    reads the neighbor table through ip/arp when /proc/net/arp is not
    available.
    """

    def __init__(self, error_handler: ErrorHandler):
        """
        Initialize the ToolValidator.

        Args:
            error_handler: ErrorHandler instance for error management
        """
        self.error_handler = error_handler
        self.logger = error_handler.logger

        # Tools in each group are alternatives; one available tool satisfies the group
        self.tool_groups = {
            "reachability": ["ping"],
            "neighbor_table": ["ip", "arp"],
        }

    def validate_all_tools(self) -> Tuple[bool, List[str]]:
        """
        Validate all required external tools.

        Returns:
            Tuple of (all_valid, missing_groups)
        """
        missing = []
        for group, tools in self.tool_groups.items():
            if not any(self._is_available(tool) for tool in tools):
                missing.append(group)
                context = ErrorContext(
                    error_type=ErrorType.TOOL_MISSING_ERROR,
                    severity=ErrorSeverity.HIGH,
                    operation="tool_availability_check",
                    component="ToolValidator",
                    additional_info={"tool_name": tools[0]},
                )
                self.error_handler.handle_error(
                    NetworkScannerError(f"None of {', '.join(tools)} found in PATH"), context
                )
        return not missing, missing

    def _is_available(self, tool_name: str) -> bool:
        tool_path = shutil.which(tool_name)
        if tool_path:
            self.logger.debug(f"Found {tool_name} at: {tool_path}")
            return True
        return False

    def check_ping_permissions(self) -> bool:
        """
        Ping the loopback address once to detect ICMP permission problems.

        Returns:
            bool: True if ping can be executed, False otherwise
        """
        count_flag = "-n" if platform.system().lower() == "windows" else "-c"
        try:
            result = subprocess.run(
                ["ping", count_flag, "1", "127.0.0.1"],
                capture_output=True,
                text=True,
                timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            self.logger.warning(f"ping permission test failed: {e}")
            return False

        if result.returncode == 0:
            return True

        error_output = result.stderr.lower()
        if any(keyword in error_output for keyword in
               ["permission", "operation not permitted", "root", "sudo"]):
            context = ErrorContext(
                error_type=ErrorType.PERMISSION_ERROR,
                severity=ErrorSeverity.HIGH,
                operation="ping_permission_check",
                component="ToolValidator",
            )
            self.error_handler.handle_error(
                NetworkScannerError("ping requires elevated permissions"), context
            )
        else:
            self.logger.warning(f"ping permission test failed: {result.stderr.strip()}")
        return False
