"""
NodeSync - SNMP Client.

Builds pysnmp credentials from SNMPSettings and opens sessions.
connect() is the SNMP capability handed to the discovery engine.
"""

import logging
from typing import Optional, Tuple

from pysnmp.hlapi.v3arch.asyncio import (
    SnmpEngine,
    CommunityData,
    UsmUserData,
    # Auth protocols
    usmHMACMD5AuthProtocol,
    usmHMACSHAAuthProtocol,
    usmHMAC128SHA224AuthProtocol,
    usmHMAC192SHA256AuthProtocol,
    usmHMAC256SHA384AuthProtocol,
    usmHMAC384SHA512AuthProtocol,
    usmNoAuthProtocol,
    # Priv protocols
    usmDESPrivProtocol,
    usm3DESEDEPrivProtocol,
    usmAesCfb128Protocol,
    usmAesCfb192Protocol,
    usmAesCfb256Protocol,
    usmNoPrivProtocol,
)

from ..config import SNMPSettings
from ..models import NodeInfo
from ..oids import SYSTEM
from .parsers import decode_string, detect_vendor
from .walker import AuthData, SNMPSession

logger = logging.getLogger(__name__)


# =============================================================================
# SNMPv3 Protocol Mappings
# =============================================================================

AUTH_PROTOCOLS = {
    "MD5": usmHMACMD5AuthProtocol,
    "SHA": usmHMACSHAAuthProtocol,
    "SHA224": usmHMAC128SHA224AuthProtocol,
    "SHA256": usmHMAC192SHA256AuthProtocol,
    "SHA384": usmHMAC256SHA384AuthProtocol,
    "SHA512": usmHMAC384SHA512AuthProtocol,
    "NONE": usmNoAuthProtocol,
}

PRIV_PROTOCOLS = {
    "DES": usmDESPrivProtocol,
    "3DES": usm3DESEDEPrivProtocol,
    "AES": usmAesCfb128Protocol,
    "AES128": usmAesCfb128Protocol,
    "AES192": usmAesCfb192Protocol,
    "AES256": usmAesCfb256Protocol,
    "NONE": usmNoPrivProtocol,
}


# =============================================================================
# Credential Builders
# =============================================================================

def build_auth(settings: SNMPSettings) -> AuthData:
    """Build pysnmp credentials based on SNMP version and security level."""

    if settings.version == "3":
        level = settings.security_level
        if level == "noAuthNoPriv":
            return UsmUserData(settings.username)

        auth_proto = AUTH_PROTOCOLS.get(settings.auth_protocol.upper(), usmHMACMD5AuthProtocol)
        if level == "authNoPriv":
            return UsmUserData(
                settings.username,
                authKey=settings.auth_password,
                authProtocol=auth_proto,
            )

        priv_proto = PRIV_PROTOCOLS.get(settings.priv_protocol.upper(), usmDESPrivProtocol)
        return UsmUserData(
            settings.username,
            authKey=settings.auth_password,
            privKey=settings.priv_password,
            authProtocol=auth_proto,
            privProtocol=priv_proto,
        )

    # v1 or v2c
    mp_model = 1 if settings.version == "2c" else 0
    return CommunityData(settings.community, mpModel=mp_model)


# =============================================================================
# Connect
# =============================================================================

class SNMPClient:
    """
    Opens SNMP sessions with one set of credentials.

    A single SnmpEngine is shared by every session the client opens.
    """

    def __init__(self, settings: SNMPSettings, engine: Optional[SnmpEngine] = None):
        self.settings = settings
        self.auth = build_auth(settings)
        self.engine = engine or SnmpEngine()

    def session(self, address: str) -> SNMPSession:
        return SNMPSession(
            address,
            self.auth,
            engine=self.engine,
            port=self.settings.port,
            timeout=self.settings.timeout,
            retries=self.settings.retries,
        )

    async def connect(self, address: str) -> Optional[Tuple[SNMPSession, NodeInfo]]:
        """
        Open a session and read the system group.

        Args:
            address: Agent IP address

        Returns:
            (session, info), or None when the agent does not answer
        """
        session = self.session(address)

        sys_descr, sys_object_id, sys_name = await session.get_multiple([
            SYSTEM.SYS_DESCR,
            SYSTEM.SYS_OBJECT_ID,
            SYSTEM.SYS_NAME,
        ])

        if session.error:
            logger.debug(f"{address}: no SNMP response: {session.error}")
            return None

        if sys_descr is None and sys_object_id is None and sys_name is None:
            logger.debug(f"{address}: empty system group")
            return None

        info = NodeInfo(
            sys_name=decode_string(sys_name) if sys_name is not None else None,
            sys_descr=decode_string(sys_descr) if sys_descr is not None else None,
            sys_object_id=decode_string(sys_object_id) if sys_object_id is not None else None,
        )
        info.vendor = detect_vendor(info.sys_object_id, info.sys_descr)

        logger.debug(f"{address}: {info.sys_name or '?'} vendor={info.vendor.value}")
        return session, info
