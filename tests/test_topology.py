"""Tests for serial -> interface resolution."""

import asyncio

from conftest import FakeSession, chassis, column, entity_table, interfaces_table, merge

from nodesync.models import DeviceVendor
from nodesync.oids import CISCO_STACK, ENTITY, HP
from nodesync.snmp.walker import TableWalker
from nodesync.topology import physical_interfaces, resolve_topology


def _cisco_stack() -> FakeSession:
    return FakeSession(merge(
        interfaces_table({10: "Gi1/0/1", 11: "Gi1/0/2", 20: "Gi2/0/1", 99: "Gi9/0/1"}),
        column(CISCO_STACK.MODULE_SERIAL, {1: "SNA", 2: "SNB"}),
        column(CISCO_STACK.PORT_MODULE_INDEX, {"1.1": 1, "1.2": 1, "2.1": 2}),
        column(CISCO_STACK.PORT_IF_INDEX, {"1.1": 10, "1.2": 11, "2.1": 20}),
    ))


def test_single_serial_owns_every_interface() -> None:
    session = FakeSession(chassis("SN1", ["eth0", "eth1"]))

    topology = asyncio.run(resolve_topology(DeviceVendor.UNKNOWN, session))

    assert topology == {"SN1": ["eth0", "eth1"]}


def test_stack_split_by_vendor_mapping() -> None:
    topology = asyncio.run(resolve_topology(DeviceVendor.CISCO, _cisco_stack()))

    assert topology == {"SNA": ["Gi1/0/1", "Gi1/0/2"], "SNB": ["Gi2/0/1"]}


def test_unmapped_interface_is_left_out() -> None:
    topology = asyncio.run(resolve_topology("cisco", _cisco_stack()))

    names = [name for names in topology.values() for name in names]
    assert "Gi9/0/1" not in names


def test_excluded_types_and_foreign_type_warning(caplog) -> None:
    session = FakeSession(interfaces_table(
        {1: "lo", 2: "eth0", 3: "Vlan1", 4: "tun0", 5: "mgmt"},
        types={1: 24, 3: 53, 4: 131, 5: 1},
    ))

    interfaces = asyncio.run(physical_interfaces(session, TableWalker()))

    assert interfaces == {"2": "eth0", "4": "tun0"}
    assert "foreign ifType (131)" in caplog.text
    assert "tun0" in caplog.text


def test_if_descr_used_without_if_name() -> None:
    session = FakeSession(merge(
        interfaces_table({1: "GigabitEthernet0/1"}, descr=True),
        chassis("SN1", []),
    ))

    topology = asyncio.run(resolve_topology(None, session))

    assert topology == {"SN1": ["GigabitEthernet0/1"]}


def test_no_serials_resolves_to_none(caplog) -> None:
    session = FakeSession(interfaces_table({1: "eth0"}))

    assert asyncio.run(resolve_topology(DeviceVendor.CISCO, session)) is None
    assert "no serials could be found" in caplog.text


def test_vendor_serials_used_when_entity_mib_is_empty() -> None:
    session = FakeSession(merge(
        interfaces_table({1: "1", 2: "2"}),
        column(HP.DEVICE_SERIAL, {1: "CN123"}),
    ))

    topology = asyncio.run(resolve_topology(DeviceVendor.HP, session))

    assert topology == {"CN123": ["1", "2"]}


def test_multi_unit_without_mapping_is_empty() -> None:
    session = FakeSession(merge(
        interfaces_table({1: "1", 2: "2"}),
        column(HP.DEVICE_SERIAL, {1: "CN123", 2: "CN456"}),
    ))

    assert asyncio.run(resolve_topology(DeviceVendor.HP, session)) == {}


def test_case_variant_serials_are_one_unit() -> None:
    session = FakeSession(merge(
        interfaces_table({1: "eth0", 2: "eth1"}),
        entity_table({1: "abc123", 2: "ABC123"}, {1: ENTITY.CLASS_CHASSIS, 2: ENTITY.CLASS_CHASSIS}),
    ))

    topology = asyncio.run(resolve_topology(DeviceVendor.UNKNOWN, session))

    assert topology == {"ABC123": ["eth0", "eth1"]}


def test_stack_serials_are_normalized() -> None:
    session = FakeSession(merge(
        interfaces_table({10: "Gi1/0/1", 20: "Gi2/0/1"}),
        column(CISCO_STACK.MODULE_SERIAL, {1: "sna", 2: "snb"}),
        column(CISCO_STACK.PORT_MODULE_INDEX, {"1.1": 1, "2.1": 2}),
        column(CISCO_STACK.PORT_IF_INDEX, {"1.1": 10, "2.1": 20}),
    ))

    topology = asyncio.run(resolve_topology(DeviceVendor.CISCO, session))

    assert topology == {"SNA": ["Gi1/0/1"], "SNB": ["Gi2/0/1"]}
