"""
Core components for network scanning functionality.
"""

from .data_models import (
    Address,
    HostStatus,
    DeviceType,
    ScanState,
    SubnetSpec,
    HostRecord,
    ScanRecord,
    address_sort_key,
    compare_addresses
)
from .address_range import parse_subnet, iter_hosts, expand, host_count
from .device_classifier import DeviceClassifier, ClassificationRule
from .vendor_lookup import VendorLookup

__all__ = [
    'Address',
    'HostStatus',
    'DeviceType',
    'ScanState',
    'SubnetSpec',
    'HostRecord',
    'ScanRecord',
    'address_sort_key',
    'compare_addresses',
    'parse_subnet',
    'iter_hosts',
    'expand',
    'host_count',
    'DeviceClassifier',
    'ClassificationRule',
    'VendorLookup'
]
