"""Tests for concurrent discovery."""

import asyncio
from pathlib import Path

from conftest import FakeSession, chassis, column, info, interfaces_table, merge

from nodesync.engine import DiscoveryEngine
from nodesync.events import EventEmitter, EventType
from nodesync.models import Candidate, DeviceVendor
from nodesync.oids import CISCO_STACK
from nodesync.notes import NoteLog


class FakeConnect:
    """connect() capability backed by a table of agents."""

    def __init__(self, agents, vendor=DeviceVendor.UNKNOWN):
        self.agents = agents
        self.vendor = vendor
        self.calls = []

    async def __call__(self, address):
        self.calls.append(address)
        agent = self.agents.get(address)
        if agent == "hang":
            await asyncio.sleep(60)
        if agent == "boom":
            raise RuntimeError("socket closed")
        if agent is None:
            return None
        return FakeSession(agent, name=address), info(self.vendor)


def _candidates():
    return [
        Candidate("10.0.0.1", "sw1", "sw1 IN A 10.0.0.1"),
        Candidate("10.0.0.2", "sw2", "sw2 IN A 10.0.0.2"),
        Candidate("10.0.0.3", "sw3", "sw3 IN A 10.0.0.3"),
    ]


def _note_messages(path: Path):
    # Drop the "YYYY-mm-dd HH:MM:SS " stamp
    return [line.split(" ", 2)[2] for line in path.read_text(encoding="utf-8").splitlines()]


def test_discover_classifies_nodes(tmp_path: Path) -> None:
    connect = FakeConnect({
        "10.0.0.1": chassis("SN1", ["eth0", "eth1"]),
        "10.0.0.3": {},
    })
    notes = NoteLog({"node": tmp_path / "nodes.log"})
    engine = DiscoveryEngine(connect, notes=notes)

    graph, result = asyncio.run(engine.discover(_candidates()))

    assert [n.ip for n in graph] == ["10.0.0.1"]
    assert result.total_attempted == 3
    assert (result.active, result.inactive, result.deviceless) == (1, 1, 1)
    assert result.devices == 1
    assert result.completed_at is not None
    assert _note_messages(tmp_path / "nodes.log") == [
        "10.0.0.1 (sw1) SN1",
        "10.0.0.2 (sw2) inactive",
        "10.0.0.3 (sw3) no devices detected",
    ]


def test_probe_failures_count_as_inactive() -> None:
    connect = FakeConnect({
        "10.0.0.1": "hang",
        "10.0.0.2": "boom",
        "10.0.0.3": chassis("SN3", ["eth0"]),
    })
    engine = DiscoveryEngine(connect, probe_timeout=0.05)

    graph, result = asyncio.run(engine.discover(_candidates()))

    assert result.inactive == 2
    assert result.active == 1
    assert graph.find_device("SN3") is not None


def test_contested_serial_goes_to_first_listed_node(tmp_path: Path) -> None:
    connect = FakeConnect({
        "10.0.0.1": chassis("SN1", ["eth0"]),
        "10.0.0.2": chassis("sn1", ["eth0"]),
    })
    notes = NoteLog({"node": tmp_path / "nodes.log"})
    engine = DiscoveryEngine(connect, notes=notes, max_concurrent=1)

    graph, result = asyncio.run(engine.discover(_candidates()[:2]))

    assert graph.find_device("SN1")[0].ip == "10.0.0.1"
    assert result.deviceless == 1
    assert _note_messages(tmp_path / "nodes.log")[1] == "10.0.0.2 (sw2) no devices detected"


def test_stack_counted(tmp_path: Path) -> None:
    stack = merge(
        interfaces_table({10: "Gi1/0/1", 20: "Gi2/0/1"}),
        column(CISCO_STACK.MODULE_SERIAL, {1: "SNA", 2: "SNB"}),
        column(CISCO_STACK.PORT_MODULE_INDEX, {"1.1": 1, "2.1": 2}),
        column(CISCO_STACK.PORT_IF_INDEX, {"1.1": 10, "2.1": 20}),
    )
    connect = FakeConnect({"10.0.0.1": stack}, vendor=DeviceVendor.CISCO)
    notes = NoteLog({"node": tmp_path / "nodes.log"})

    graph, result = asyncio.run(DiscoveryEngine(connect, notes=notes).discover(_candidates()[:1]))

    assert result.stacks == 1
    assert result.devices == 2
    assert graph.stack_count == 1
    assert _note_messages(tmp_path / "nodes.log") == ["10.0.0.1 (sw1) SNA SNB"]


def test_stack_without_port_mapping_is_deviceless() -> None:
    stack = chassis("SNA", ["1/1/1"])
    stack["1.3.6.1.2.1.47.1.1.1.1.5.3"] = 3
    stack["1.3.6.1.2.1.47.1.1.1.1.11.3"] = "SNB"
    connect = FakeConnect({"10.0.0.1": stack})

    _, result = asyncio.run(DiscoveryEngine(connect).discover(_candidates()[:1]))

    assert result.deviceless == 1
    assert result.stacks == 0


def test_events_and_stats() -> None:
    emitter = EventEmitter()
    seen = []
    emitter.subscribe(lambda event: seen.append(event.event_type))
    connect = FakeConnect({"10.0.0.1": chassis("SN1", ["eth0"])})

    asyncio.run(DiscoveryEngine(connect, event_emitter=emitter).discover(_candidates()))

    assert seen[0] == EventType.DISCOVERY_STARTED
    assert EventType.DISCOVERY_COMPLETE in seen
    assert seen.count(EventType.NODE_INACTIVE) == 2
    assert emitter.stats.active == 1
    assert emitter.stats.probed == 3


def test_cancel_skips_probes_not_started() -> None:
    connect = FakeConnect({"10.0.0.1": chassis("SN1", ["eth0"])})
    engine = DiscoveryEngine(connect)

    async def run():
        cancel = asyncio.Event()
        cancel.set()
        return await engine.discover(_candidates(), cancel_event=cancel)

    graph, result = asyncio.run(run())

    assert result.cancelled
    assert result.total_attempted == 0
    assert len(graph) == 0
    assert connect.calls == []
