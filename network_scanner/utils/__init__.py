"""
Utility functions and helper classes.
"""

from .logger import Logger, LogLevel, logger, set_log_level, get_logger
from .error_handler import (
    ErrorHandler, ToolValidator, ErrorContext, ErrorType, ErrorSeverity,
    NetworkScannerError, ParseError, ProbeDispatchError, ConfigurationError,
    ExportError, UnsupportedFormatError, WriteError
)
from . import network_utils

__all__ = [
    'Logger',
    'LogLevel',
    'logger',
    'set_log_level',
    'get_logger',
    'ErrorHandler',
    'ToolValidator',
    'ErrorContext',
    'ErrorType',
    'ErrorSeverity',
    'NetworkScannerError',
    'ParseError',
    'ProbeDispatchError',
    'ConfigurationError',
    'ExportError',
    'UnsupportedFormatError',
    'WriteError',
    'network_utils'
]
