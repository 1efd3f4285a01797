"""Shared fixtures: an in-memory SNMP agent and topology builders."""

from typing import Any, Dict, Iterable, Optional, Tuple

import pytest

from nodesync.config import SyncSettings
from nodesync.models import DeviceVendor, NodeInfo
from nodesync.oids import ENTITY, INTERFACES, Column
from nodesync.records import RecordSchema


def _oid_key(oid: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in oid.strip('.').split('.'))


class FakeSession:
    """
    GETNEXT over a static OID table.

    `error_at` makes the session report an error when asked to continue
    from that OID, the way a timed-out agent would.
    """

    def __init__(self, table: Dict[str, Any], error_at: Optional[str] = None, name: str = "fake"):
        self.table = dict(table)
        self._ordered = sorted(self.table, key=_oid_key)
        self.error: Optional[str] = None
        self.error_at = error_at
        self.name = name
        self.requests = []

    def __repr__(self) -> str:
        return f"FakeSession({self.name})"

    async def next(self, oid: str):
        self.requests.append(oid)
        self.error = None

        if self.error_at is not None and oid == self.error_at:
            self.error = "timeout"
            return None

        key = _oid_key(oid)
        for candidate in self._ordered:
            if _oid_key(candidate) > key:
                return candidate, self.table[candidate]
        return None


def column(col: Column, rows: Dict[Any, Any]) -> Dict[str, Any]:
    """Table entries for one column: {index: value} -> {oid: value}."""
    return {f"{col.oid}.{index}": value for index, value in rows.items()}


def merge(*tables: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for table in tables:
        merged.update(table)
    return merged


def interfaces_table(names: Dict[int, str], types: Optional[Dict[int, int]] = None,
                     descr: bool = False) -> Dict[str, Any]:
    """IF-MIB rows; every interface is ethernetCsmacd unless types says otherwise."""
    types = {i: (types or {}).get(i, INTERFACES.TYPE_ETHERNET) for i in names}
    name_column = INTERFACES.IF_DESCR if descr else INTERFACES.IF_NAME
    return merge(column(INTERFACES.IF_TYPE, types), column(name_column, names))


def entity_table(serials: Dict[int, str], classes: Dict[int, int]) -> Dict[str, Any]:
    return merge(
        column(ENTITY.PHYS_CLASS, classes),
        column(ENTITY.PHYS_SERIAL_NUM, serials),
    )


def chassis(serial: str, names: Iterable[str]) -> Dict[str, Any]:
    """A single-chassis agent with ENTITY-MIB and the given interfaces."""
    names = {index: name for index, name in enumerate(names, 1)}
    return merge(
        interfaces_table(names),
        entity_table({1: serial, 2: ""}, {1: ENTITY.CLASS_CHASSIS, 2: ENTITY.CLASS_PORT}),
    )


def info(vendor: DeviceVendor = DeviceVendor.UNKNOWN, name: str = "sw") -> NodeInfo:
    return NodeInfo(sys_name=name, sys_descr="test agent", vendor=vendor)


@pytest.fixture
def schema() -> RecordSchema:
    return RecordSchema(device_field="serial", interface_field="ifname", info_fields=["loc", "owner"])


@pytest.fixture
def sync_settings(tmp_path) -> SyncSettings:
    return SyncSettings(
        table="inventory",
        device_field="serial",
        interface_field="ifname",
        info_fields=["loc", "owner"],
        node_log=str(tmp_path / "log" / "nodes.log"),
        device_log=str(tmp_path / "log" / "devices.log"),
        bogey_log=str(tmp_path / "log" / "bogies.log"),
        update_log=str(tmp_path / "log" / "updates.log"),
        node_cache=str(tmp_path / "dns.txt"),
        record_cache=str(tmp_path / "db.csv"),
    )
