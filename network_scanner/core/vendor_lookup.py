"""
MAC prefix (OUI) to vendor lookup.

The table is intentionally small: it covers vendors that matter to the
device classifier and the ones most often seen on small office networks.
It is a heuristic, not an authoritative registry.
"""

import re
from typing import Dict, Optional

from ..utils.network_utils import oui_of

UNKNOWN_VENDOR = "Unknown"

DEFAULT_OUI_TABLE: Dict[str, str] = {
    # Virtualization
    "00:50:56": "VMware",
    "00:0C:29": "VMware",
    "00:05:69": "VMware",
    "00:1C:14": "VMware",
    "08:00:27": "VirtualBox",
    "0A:00:27": "VirtualBox",
    "00:15:5D": "Microsoft Hyper-V",
    "52:54:00": "QEMU/KVM",
    "00:16:3E": "Xen",
    "00:1C:42": "Parallels",
    # Embedded boards and modules
    "B8:27:EB": "Raspberry Pi",
    "DC:A6:32": "Raspberry Pi",
    "E4:5F:01": "Raspberry Pi",
    "D8:3A:DD": "Raspberry Pi",
    "28:CD:C1": "Raspberry Pi",
    "24:0A:C4": "Espressif",
    "30:AE:A4": "Espressif",
    "84:F3:EB": "Espressif",
    "A4:CF:12": "Espressif",
    "24:6F:28": "Espressif",
    "EC:FA:BC": "Espressif",
    "A8:61:0A": "Arduino",
    # Cameras
    "44:19:B6": "Hikvision",
    "C0:56:E3": "Hikvision",
    "28:57:BE": "Hikvision",
    "BC:AD:28": "Hikvision",
    "3C:EF:8C": "Dahua",
    "90:02:A9": "Dahua",
    "00:40:8C": "Axis",
    "AC:CC:8E": "Axis",
    # Printers
    "00:80:77": "Brother",
    "00:1B:A9": "Brother",
    "00:1E:8F": "Canon",
    "00:00:85": "Canon",
    "00:26:AB": "Epson",
    "64:EB:8C": "Epson",
    "00:04:00": "Lexmark",
    "00:21:B7": "Lexmark",
    # Network equipment
    "24:A4:3C": "Ubiquiti",
    "FC:EC:DA": "Ubiquiti",
    "80:2A:A8": "Ubiquiti",
    "04:18:D6": "Ubiquiti",
    "78:8A:20": "Ubiquiti",
    "F0:9F:C2": "Ubiquiti",
    "4C:5E:0C": "MikroTik",
    "6C:3B:6B": "MikroTik",
    "D4:CA:6D": "MikroTik",
    "E4:8D:8C": "MikroTik",
    "A0:40:A0": "Netgear",
    "20:4E:7F": "Netgear",
    "C4:04:15": "Netgear",
    "00:14:6C": "Netgear",
    "50:C7:BF": "TP-Link",
    "F4:F2:6D": "TP-Link",
    "98:DA:C4": "TP-Link",
    "EC:08:6B": "TP-Link",
    "00:00:0C": "Cisco",
    "00:1A:A1": "Cisco",
    "CC:46:D6": "Cisco",
    "F8:66:F2": "Cisco",
    "3C:CE:73": "Cisco",
    # Computers, phones and appliances
    "28:CF:E9": "Apple",
    "A4:5E:60": "Apple",
    "F0:18:98": "Apple",
    "3C:22:FB": "Apple",
    "00:1B:21": "Intel",
    "00:14:22": "Dell",
    "F8:B1:56": "Dell",
    "18:03:73": "Dell",
    "00:17:08": "Hewlett Packard",
    "3C:D9:2B": "Hewlett Packard",
    "00:16:32": "Samsung",
    "5C:0A:5B": "Samsung",
    "00:11:32": "Synology",
    "F4:F5:D8": "Google",
    "3C:5A:B4": "Google",
    "F0:27:2D": "Amazon",
    "44:65:0D": "Amazon",
    "00:0E:58": "Sonos",
    "5C:AA:FD": "Sonos",
}


class VendorLookup:
    """
    Resolves a MAC address to a vendor name through its OUI.

    Extra entries (for example from export_config.yml) are merged over the
    built-in table.
    """

    def __init__(self, extra_entries: Optional[Dict[str, str]] = None):
        """
        Initialize the lookup table.

        Args:
            extra_entries: Additional OUI -> vendor entries; keys may use any
                MAC notation for the first three octets
        """
        self._table = dict(DEFAULT_OUI_TABLE)
        for prefix, vendor in (extra_entries or {}).items():
            normalized = self._normalize_prefix(prefix)
            if normalized and vendor:
                self._table[normalized] = str(vendor)

    @staticmethod
    def _normalize_prefix(prefix: str) -> Optional[str]:
        digits = re.sub(r"[^0-9A-Fa-f]", "", str(prefix))
        if len(digits) != 6:
            return None
        return ":".join(digits[i:i + 2] for i in (0, 2, 4)).upper()

    def lookup(self, mac_address: Optional[str]) -> str:
        """
        Return the vendor for a MAC address.

        Args:
            mac_address: MAC address in any supported notation

        Returns:
            str: Vendor name, or "Unknown" when the MAC is empty, invalid or
                its OUI is not in the table
        """
        if not mac_address:
            return UNKNOWN_VENDOR
        oui = oui_of(mac_address)
        if oui is None:
            return UNKNOWN_VENDOR
        return self._table.get(oui, UNKNOWN_VENDOR)

    def __len__(self) -> int:
        return len(self._table)
