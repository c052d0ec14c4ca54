"""
Configuration module for the Network Scanner.
Provides configuration loading and validation for scan, port scan and export settings.
"""

from .config_loader import ConfigLoader, ScanConfig, PortScanConfig, ExportConfig

__all__ = ['ConfigLoader', 'ScanConfig', 'PortScanConfig', 'ExportConfig']
