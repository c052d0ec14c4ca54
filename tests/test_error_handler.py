"""
tests.test_error_handler

Tests for the error hierarchy, ErrorHandler and ToolValidator.
"""

import subprocess
import unittest
from unittest import mock

from network_scanner.utils.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    ExportError,
    NetworkScannerError,
    ParseError,
    ToolValidator,
    UnsupportedFormatError,
    WriteError,
)
from network_scanner.utils.logger import Logger, LogLevel

QUIET = Logger("test", LogLevel.ERROR)


class TestErrorHierarchy(unittest.TestCase):
    """Test the exception classes."""

    def test_hierarchy(self) -> None:
        """Export failures share a base class callers can catch."""
        self.assertTrue(issubclass(UnsupportedFormatError, ExportError))
        self.assertTrue(issubclass(WriteError, ExportError))
        self.assertTrue(issubclass(ParseError, NetworkScannerError))

    def test_context_is_kept(self) -> None:
        """The error context travels with the exception."""
        context = ErrorContext(ErrorType.EXPORT_ERROR, ErrorSeverity.HIGH, "write", "ResultExporter")
        error = WriteError("disk full", context)
        self.assertIs(error.error_context, context)
        self.assertEqual(str(error), "disk full")


class TestErrorHandler(unittest.TestCase):
    """Test ErrorHandler."""

    def test_handle_error(self) -> None:
        """Errors are counted per type and described on one line."""
        handler = ErrorHandler(QUIET)
        context = ErrorContext(
            error_type=ErrorType.PROBE_ERROR,
            severity=ErrorSeverity.MEDIUM,
            operation="probe",
            component="ScanOrchestrator",
            additional_info={"address": "10.0.0.7"},
        )
        message = handler.handle_error(RuntimeError("boom"), context)

        self.assertEqual(message, "10.0.0.7: ScanOrchestrator.probe failed: boom")
        self.assertEqual(handler.error_statistics[ErrorType.PROBE_ERROR], 1)
        self.assertEqual(handler.total_errors(), 1)

    def test_description_without_address(self) -> None:
        """Errors not tied to a host have no address prefix."""
        context = ErrorContext(ErrorType.CALLBACK_ERROR, ErrorSeverity.LOW, "progress_callback", "ScanOrchestrator")
        self.assertEqual(ErrorHandler.describe(ValueError("x"), context),
                         "ScanOrchestrator.progress_callback failed: x")


class TestToolValidator(unittest.TestCase):
    """Test external tool checks."""

    def test_all_tools_present(self) -> None:
        """Every group satisfied means success."""
        validator = ToolValidator(ErrorHandler(QUIET))
        with mock.patch("shutil.which", return_value="/usr/bin/tool"):
            self.assertEqual(validator.validate_all_tools(), (True, []))

    def test_alternatives(self) -> None:
        """arp alone satisfies the neighbor table group."""
        validator = ToolValidator(ErrorHandler(QUIET))
        with mock.patch("shutil.which", side_effect=lambda tool: None if tool == "ip" else f"/sbin/{tool}"):
            self.assertEqual(validator.validate_all_tools(), (True, []))

    def test_missing_ping(self) -> None:
        """A missing ping is reported and counted."""
        handler = ErrorHandler(QUIET)
        validator = ToolValidator(handler)
        with mock.patch("shutil.which", side_effect=lambda tool: None if tool == "ping" else f"/sbin/{tool}"):
            self.assertEqual(validator.validate_all_tools(), (False, ["reachability"]))
        self.assertEqual(handler.error_statistics[ErrorType.TOOL_MISSING_ERROR], 1)

    def test_ping_permissions(self) -> None:
        """A permission failure of the loopback ping is a permission error."""
        handler = ErrorHandler(QUIET)
        validator = ToolValidator(handler)
        denied = subprocess.CompletedProcess(["ping"], 2, stdout="", stderr="ping: socket: Operation not permitted")
        with mock.patch("subprocess.run", return_value=denied):
            self.assertFalse(validator.check_ping_permissions())
        self.assertEqual(handler.error_statistics[ErrorType.PERMISSION_ERROR], 1)

        ok = subprocess.CompletedProcess(["ping"], 0, stdout="1 received", stderr="")
        with mock.patch("subprocess.run", return_value=ok):
            self.assertTrue(validator.check_ping_permissions())


if __name__ == "__main__":
    unittest.main()
