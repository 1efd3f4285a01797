"""
NodeSync - SNMP Session and Table Walker.

Async SNMP GETNEXT session bound to one agent, and the ordered
fallback table walk used by topology resolution.

Features:
- Async/await with pysnmp.hlapi.v3arch.asyncio
- One transport per session, created on first use
- Transport failures are recorded on the session, never raised
- Prefix-based table boundary detection
- First-success fallback across candidate tables

Usage:
    from nodesync.snmp.walker import SNMPSession, TableWalker
    from nodesync.oids import INTERFACES

    session = SNMPSession("192.168.1.1", auth)
    walker = TableWalker()

    result = await walker.walk(INTERFACES.NAME_CANDIDATES, session)
    if result:
        names, indexes = result
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pysnmp.hlapi.v3arch.asyncio import (
    get_cmd, next_cmd,
    SnmpEngine, CommunityData, UsmUserData,
    UdpTransportTarget, ContextData,
    ObjectType, ObjectIdentity,
)
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from ..oids import Column
from .parsers import decode_string, row_index

logger = logging.getLogger(__name__)

# Type aliases
AuthData = Union[CommunityData, UsmUserData]
NextResult = Tuple[str, Any]
WalkResult = Tuple[List[str], List[str]]

# SNMPv1 agents report the end of the MIB view as noSuchName
NO_SUCH_NAME = 2

END_OF_VIEW = (EndOfMibView, NoSuchInstance, NoSuchObject)


class SNMPSession:
    """
    Async SNMP session bound to a single agent.

    Every request clears and then sets `error`; callers check it after
    each call the way a synchronous session flag would be checked.

    Attributes:
        target: Agent address
        auth: CommunityData (v1/v2c) or UsmUserData (v3)
        engine: pysnmp SnmpEngine instance
        port: UDP port
        timeout: Timeout per request in seconds
        retries: Retry count per request
        error: Description of the last failure, None after success
    """

    def __init__(
        self,
        target: str,
        auth: AuthData,
        engine: Optional[SnmpEngine] = None,
        port: int = 161,
        timeout: float = 2.0,
        retries: int = 1,
    ):
        self.target = target
        self.auth = auth
        self.engine = engine or SnmpEngine()
        self.port = port
        self.timeout = timeout
        self.retries = retries
        self.error: Optional[str] = None
        self._transport: Optional[UdpTransportTarget] = None

    def __repr__(self) -> str:
        return f"SNMPSession({self.target}:{self.port})"

    async def _get_transport(self) -> UdpTransportTarget:
        if self._transport is None:
            self._transport = await UdpTransportTarget.create(
                (self.target, self.port),
                timeout=self.timeout,
                retries=self.retries
            )
        return self._transport

    async def _request(self, command, *object_types: ObjectType) -> Optional[Sequence]:
        """
        Run one pysnmp command and return its var_binds.

        Returns None and sets `error` on any failure.
        """
        self.error = None

        try:
            transport = await self._get_transport()

            error_indication, error_status, error_index, var_binds = await asyncio.wait_for(
                command(
                    self.engine,
                    self.auth,
                    transport,
                    ContextData(),
                    *object_types,
                    lookupMib=False
                ),
                # Extra time for retries on the wire
                timeout=self.timeout * (self.retries + 1) + 2
            )

        except asyncio.TimeoutError:
            self.error = "timeout"
            return None

        except Exception as e:
            self.error = f"{type(e).__name__}: {e}"
            return None

        if error_indication:
            self.error = str(error_indication)
            return None

        if error_status:
            if int(error_status) == NO_SUCH_NAME and command is next_cmd:
                return []
            self.error = error_status.prettyPrint()
            return None

        return var_binds

    async def next(self, oid: str) -> Optional[NextResult]:
        """
        GETNEXT one OID.

        Args:
            oid: Numeric OID to continue from

        Returns:
            (next_oid, value), or None at the end of the MIB view or on
            error (check `error` to tell them apart)
        """
        var_binds = await self._request(next_cmd, ObjectType(ObjectIdentity(oid)))
        if not var_binds:
            return None

        next_oid, value = var_binds[0]
        if isinstance(value, END_OF_VIEW):
            return None

        return str(next_oid), value

    async def get_multiple(self, oids: List[str]) -> List[Optional[Any]]:
        """
        Get multiple SNMP values in one request.

        Returns:
            List of values (None for failed or missing OIDs)
        """
        object_types = [ObjectType(ObjectIdentity(oid)) for oid in oids]

        var_binds = await self._request(get_cmd, *object_types)
        if not var_binds:
            return [None] * len(oids)

        values: List[Optional[Any]] = []
        for var_bind in var_binds:
            value = var_bind[1] if var_bind else None
            values.append(None if isinstance(value, END_OF_VIEW) else value)
        return values


class TableWalker:
    """
    Ordered fallback walk over candidate table columns.

    Each candidate is walked with GETNEXT from its column OID. A row is
    kept while the returned OID is still inside the column and the session
    reports no error. The first candidate producing at least one row wins.

    Attributes:
        max_rows: Safety limit for rows per column
    """

    def __init__(self, max_rows: int = 10000):
        self.max_rows = max_rows

    async def walk_column(self, column: Column, session) -> WalkResult:
        """
        Walk one column.

        Returns:
            (values, row_ids) in agent order; both empty when nothing
            was returned
        """
        values: List[str] = []
        row_ids: List[str] = []
        oid = column.oid

        while len(values) < self.max_rows:
            result = await session.next(oid)

            if session.error:
                logger.warning(
                    f"{session!r}: {column.label} walk stopped after "
                    f"{len(values)} rows: {session.error}"
                )
                break

            if result is None:
                break

            next_oid, value = result
            index = row_index(next_oid, column.oid)
            if index is None:
                break

            if next_oid == oid:
                logger.warning(f"{session!r}: {column.label} OID did not increase at {oid}")
                break

            values.append(decode_string(value))
            row_ids.append(index)
            oid = next_oid

        return values, row_ids

    async def walk(self, candidates: Sequence[Column], session) -> Optional[WalkResult]:
        """
        Walk candidate columns in order until one yields rows.

        Args:
            candidates: Columns to try, preferred first
            session: Object with async `next(oid)` and an `error` attribute

        Returns:
            (values, row_ids) of the first non-empty candidate, or None
        """
        for column in candidates:
            values, row_ids = await self.walk_column(column, session)
            if values:
                logger.debug(f"{session!r}: {column.label} returned {len(values)} rows")
                return values, row_ids

            logger.debug(f"{session!r}: {column.label} returned no rows")

        return None

    async def walk_map(self, candidates: Sequence[Column], session) -> Dict[str, str]:
        """Walk candidates and return {row_id: value}; empty when nothing matched."""
        result = await self.walk(candidates, session)
        if result is None:
            return {}
        values, row_ids = result
        return dict(zip(row_ids, values))
