"""Tests for entity graph construction."""

import asyncio

from conftest import FakeSession, chassis, entity_table, info, interfaces_table, merge

from nodesync.graph import (
    EntityGraph,
    describe_device,
    describe_interface,
    describe_node,
    initialize_device,
    initialize_interface,
    initialize_node,
)
from nodesync.models import DeviceVendor, Node
from nodesync.oids import ENTITY


def _node(ip: str = "10.0.0.1", hostname: str = "sw1") -> Node:
    return Node(ip=ip, hostname=hostname)


def test_initialize_device_normalizes_serial() -> None:
    node = _node()

    device = initialize_device(node, " fox123abc ", ["eth0"])

    assert device.serial == "FOX123ABC"
    assert list(node.devices) == ["FOX123ABC"]
    assert device.interfaces["eth0"].device_serial == "FOX123ABC"


def test_initialize_is_idempotent() -> None:
    node = _node()
    first = initialize_device(node, "SN1", ["eth0", "eth1"])
    first.recognized = True
    first.interfaces["eth0"].info["loc"] = "rack1"

    second = initialize_device(node, "sn1", ["eth0", "eth1"])

    assert second is first
    assert second.recognized
    assert len(second.interfaces) == 2
    assert second.interfaces["eth0"].info == {"loc": "rack1"}


def test_initialize_interface_with_fields_marks_recognized() -> None:
    device = initialize_device(_node(), "SN1")

    plain = initialize_interface(device, "eth0")
    filled = initialize_interface(device, "eth1", {"loc": "rack1"})

    assert not plain.recognized
    assert filled.recognized
    assert filled.info == {"loc": "rack1"}


def test_initialize_node_builds_devices() -> None:
    node = _node()
    node.session = FakeSession(chassis("sn1", ["eth0", "eth1"]))
    node.info = info()

    serials = asyncio.run(initialize_node(node))

    assert serials == ["SN1"]
    assert sorted(node.devices["SN1"].interfaces) == ["eth0", "eth1"]


def test_initialize_node_merges_case_variant_serials() -> None:
    node = _node()
    node.session = FakeSession(merge(
        interfaces_table({1: "eth0", 2: "eth1"}),
        entity_table({1: "abc123", 2: "ABC123"}, {1: ENTITY.CLASS_CHASSIS, 2: ENTITY.CLASS_CHASSIS}),
    ))
    node.info = info()

    serials = asyncio.run(initialize_node(node))

    assert serials == ["ABC123"]
    assert sorted(node.devices["ABC123"].interfaces) == ["eth0", "eth1"]


def test_initialize_node_without_session() -> None:
    assert asyncio.run(initialize_node(_node())) == []


def test_find_device_is_case_insensitive() -> None:
    graph = EntityGraph()
    node = _node()
    initialize_device(node, "FOX123", ["eth0"])
    graph.add_node(node)

    found = graph.find_device("fox123")

    assert found is not None
    assert found[0] is node
    assert found[1].serial == "FOX123"
    assert graph.find_device("FOX999") is None


def test_add_node_drops_serial_held_elsewhere(caplog) -> None:
    graph = EntityGraph()
    first = _node("10.0.0.1", "sw1")
    initialize_device(first, "SN1", ["eth0"])
    second = _node("10.0.0.2", "sw2")
    initialize_device(second, "sn1", ["eth0"])
    initialize_device(second, "SN2", ["eth0"])

    assert graph.add_node(first) == ["SN1"]
    assert graph.add_node(second) == ["SN2"]
    assert graph.find_device("SN1")[0] is first
    assert "already held by 10.0.0.1" in caplog.text


def test_add_node_rejects_node_left_without_devices() -> None:
    graph = EntityGraph()
    first = _node("10.0.0.1", "sw1")
    initialize_device(first, "SN1")
    duplicate = _node("10.0.0.2", "sw1-alias")
    initialize_device(duplicate, "SN1")

    graph.add_node(first)

    assert graph.add_node(duplicate) == []
    assert "10.0.0.2" not in graph
    assert len(graph) == 1


def test_iteration_order_and_counts() -> None:
    graph = EntityGraph()
    stack = _node("10.0.0.9", "stack")
    initialize_device(stack, "SNB", ["2/1/1"])
    initialize_device(stack, "SNA", ["1/1/1", "1/1/2"])
    single = _node("10.0.0.1", "sw1")
    initialize_device(single, "SN1", ["eth0"])
    graph.add_node(stack)
    graph.add_node(single)

    assert [n.ip for n in graph] == ["10.0.0.1", "10.0.0.9"]
    assert [d.serial for _, d in graph.devices()] == ["SN1", "SNA", "SNB"]
    assert [i.if_name for _, _, i in graph.interfaces()] == ["eth0", "1/1/1", "1/1/2", "2/1/1"]
    assert graph.device_count == 3
    assert graph.stack_count == 1


def test_describe_node() -> None:
    node = _node()
    node.info = info(DeviceVendor.CISCO, "sw1")
    device = initialize_device(node, "SN1", ["eth0", "eth1"])
    device.recognized = True
    device.interfaces["eth0"].recognized = True

    text = describe_node(node, indent=2)

    assert text.splitlines() == [
        "10.0.0.1 (sw1)",
        "  1 device (1 recognized)",
        "  2 interfaces (1 recognized)",
        "  cisco sw1",
        "  SN1",
    ]


def test_describe_device_and_interface() -> None:
    node = _node()
    device = initialize_device(node, "SN1", ["eth0"])
    interface = initialize_interface(device, "eth0", {"owner": "ops", "loc": "rack1"})

    assert describe_device(device, node).splitlines() == [
        "SN1 at 10.0.0.1 (sw1)",
        "    1 interface (1 recognized)",
    ]
    assert describe_interface(interface, node).splitlines() == [
        "eth0 on SN1 at 10.0.0.1 (sw1)",
        "    loc: rack1",
        "    owner: ops",
    ]
