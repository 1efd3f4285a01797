"""
NodeSync - SNMP Module.

Async SNMP access using pysnmp.

Components:
- walker: SNMPSession (GETNEXT/GET against one agent) and TableWalker
- parsers: Value decoding and vendor detection
- client: Credential building and connect()

Usage:
    from nodesync.snmp import SNMPClient, TableWalker

    client = SNMPClient(settings.snmp)
    connected = await client.connect("192.168.1.1")
    if connected:
        session, info = connected
"""

from .walker import SNMPSession, TableWalker, AuthData
from .parsers import (
    decode_string,
    decode_int,
    row_index,
    detect_vendor,
    vendor_from_object_id,
)
from .client import SNMPClient, build_auth


__all__ = [
    # Walker
    'SNMPSession',
    'TableWalker',
    'AuthData',
    # Parsers
    'decode_string',
    'decode_int',
    'row_index',
    'detect_vendor',
    'vendor_from_object_id',
    # Client
    'SNMPClient',
    'build_auth',
]
