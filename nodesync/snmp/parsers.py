"""
NodeSync - SNMP Value Parsers.

Functions for turning pysnmp values into plain Python values.

Handles:
- Text value extraction from OctetString / DisplayString
- Integer extraction
- Row index extraction from returned OIDs
- Vendor detection from sysObjectID and sysDescr

Decoders return fallback values on decode errors instead of raising.
"""

import re
from typing import Any, Optional

from ..oids import ENTERPRISES, ENTERPRISE_VENDORS
from ..models import DeviceVendor


# =============================================================================
# String / Integer Decoding
# =============================================================================

def decode_string(value: Any) -> str:
    """
    Safely convert SNMP value to string.

    Handles pysnmp OctetString, DisplayString, Integer and plain Python
    values. Strips null bytes and surrounding whitespace.

    Returns:
        Clean string value
    """
    try:
        if hasattr(value, 'asOctets'):
            # Try UTF-8 first, fall back to latin-1
            octets = value.asOctets()
            try:
                result = octets.decode('utf-8')
            except UnicodeDecodeError:
                result = octets.decode('latin-1')
        elif hasattr(value, 'prettyPrint'):
            result = value.prettyPrint()
        elif isinstance(value, bytes):
            try:
                result = value.decode('utf-8')
            except UnicodeDecodeError:
                result = value.decode('latin-1')
        else:
            result = str(value)

        return result.replace('\x00', '').strip()

    except Exception:
        return str(value).strip()


def decode_int(value: Any) -> Optional[int]:
    """
    Safely convert SNMP value to integer.

    Returns:
        Integer value or None on failure
    """
    try:
        if hasattr(value, 'prettyPrint'):
            return int(value.prettyPrint())
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


# =============================================================================
# OID Helpers
# =============================================================================

def row_index(oid: str, column_oid: str) -> Optional[str]:
    """
    Extract the row index of a returned OID relative to a table column.

    Returns None when the OID has left the column.

    Examples:
        >>> row_index("1.3.6.1.2.1.2.2.1.3.12", "1.3.6.1.2.1.2.2.1.3")
        '12'
        >>> row_index("1.3.6.1.2.1.2.2.1.4.1", "1.3.6.1.2.1.2.2.1.3")
    """
    prefix = column_oid.rstrip('.') + '.'
    if not oid.startswith(prefix):
        return None
    index = oid[len(prefix):]
    return index or None


# =============================================================================
# Vendor Detection
# =============================================================================

# sysDescr fallback patterns (case-insensitive)
VENDOR_PATTERNS = {
    DeviceVendor.CISCO: [
        r'cisco',
        r'catalyst',
    ],
    DeviceVendor.FOUNDRY: [
        r'foundry',
        r'brocade',
        r'fastiron',
        r'ironware',
    ],
    DeviceVendor.HP: [
        r'procurve',
        r'hewlett',
        r'\bhp\b',
    ],
}


def vendor_from_object_id(sys_object_id: Optional[str]) -> DeviceVendor:
    """
    Map a sysObjectID to a vendor through its enterprise number.

    Examples:
        >>> vendor_from_object_id("1.3.6.1.4.1.9.1.516")
        <DeviceVendor.CISCO: 'cisco'>
    """
    if not sys_object_id:
        return DeviceVendor.UNKNOWN

    oid = sys_object_id.lstrip('.')
    prefix = ENTERPRISES + '.'
    if not oid.startswith(prefix):
        return DeviceVendor.UNKNOWN

    enterprise = oid[len(prefix):].split('.', 1)[0]
    try:
        tag = ENTERPRISE_VENDORS.get(int(enterprise))
    except ValueError:
        return DeviceVendor.UNKNOWN

    return DeviceVendor(tag) if tag else DeviceVendor.UNKNOWN


def detect_vendor(
    sys_object_id: Optional[str] = None,
    sys_descr: Optional[str] = None,
) -> DeviceVendor:
    """
    Detect device vendor.

    The sysObjectID enterprise number is authoritative; sysDescr patterns
    are used when the object ID is missing or foreign.

    Examples:
        >>> detect_vendor("1.3.6.1.4.1.1991.1.3.52.2.1")
        <DeviceVendor.FOUNDRY: 'foundry'>
        >>> detect_vendor(None, "ProCurve J9020A Switch 2510-48")
        <DeviceVendor.HP: 'hp'>
    """
    vendor = vendor_from_object_id(sys_object_id)
    if vendor != DeviceVendor.UNKNOWN:
        return vendor

    if not sys_descr:
        return DeviceVendor.UNKNOWN

    sys_descr_lower = sys_descr.lower()

    for vendor, patterns in VENDOR_PATTERNS.items():
        for pattern in patterns:
            if re.search(pattern, sys_descr_lower):
                return vendor

    return DeviceVendor.UNKNOWN

