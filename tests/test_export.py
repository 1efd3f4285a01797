"""Tests for note logs, caches and the update hand-off."""

import csv
import re
from pathlib import Path

from nodesync.export import (
    node_record,
    update_lines,
    write_node_cache,
    write_record_cache,
    write_updates,
)
from nodesync.graph import EntityGraph, initialize_device, initialize_interface
from nodesync.models import Node
from nodesync.notes import NoteLog
from nodesync.records import RecordSchema
from nodesync.sources import read_node_list

STAMP = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} ")


def _graph() -> EntityGraph:
    graph = EntityGraph()
    sw1 = Node(ip="10.0.0.1", hostname="sw1", record="sw1.example.net. 3600 IN A 10.0.0.1")
    device = initialize_device(sw1, "SN1", ["eth1"])
    initialize_interface(device, "eth0", {"loc": "rack1", "owner": None})
    sw2 = Node(ip="2001:db8::2", hostname="sw2")
    initialize_device(sw2, "SN2", ["ge1"])
    graph.add_node(sw1)
    graph.add_node(sw2)
    return graph


def test_note_appends_stamped_lines(tmp_path: Path) -> None:
    path = tmp_path / "log" / "nodes.log"
    notes = NoteLog({"node": path})

    notes.note("node", "10.0.0.1 (sw1) inactive")
    notes.note("node", "10.0.0.2 (sw2) SN2")

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert STAMP.match(lines[0])
    assert lines[1].endswith(" 10.0.0.2 (sw2) SN2")


def test_note_truncate_and_unstamped(tmp_path: Path) -> None:
    path = tmp_path / "cache.txt"
    notes = NoteLog({"cache": path})

    notes.note("cache", "old", stamp=False)
    notes.note("cache", "new", stamp=False, truncate=True)

    assert path.read_text(encoding="utf-8") == "new\n"


def test_unregistered_log_is_ignored(tmp_path: Path) -> None:
    notes = NoteLog({"node": tmp_path / "nodes.log", "bogey": ""})

    notes.note("bogey", "dropped")
    notes.note("update", "dropped")

    assert notes.path("bogey") is None
    assert not (tmp_path / "nodes.log").exists()


def test_node_record() -> None:
    assert node_record(Node(ip="10.0.0.1", hostname="sw1", record="sw1 IN A 10.0.0.1")) == "sw1 IN A 10.0.0.1"
    assert node_record(Node(ip="10.0.0.1", hostname="sw1")) == "sw1 IN A 10.0.0.1"
    assert node_record(Node(ip="2001:db8::2", hostname="sw2")) == "sw2 IN AAAA 2001:db8::2"


def test_node_cache_is_a_node_list(tmp_path: Path) -> None:
    path = tmp_path / "dns.txt"
    notes = NoteLog({"node_cache": path})
    graph = _graph()

    write_node_cache(graph, notes)
    write_node_cache(graph, notes)

    assert path.read_text(encoding="utf-8").splitlines() == [
        "sw1.example.net. 3600 IN A 10.0.0.1",
        "sw2 IN AAAA 2001:db8::2",
    ]
    assert [c.ip for c in read_node_list(str(path))] == ["10.0.0.1", "2001:db8::2"]


def test_record_cache(tmp_path: Path, schema: RecordSchema) -> None:
    path = tmp_path / "var" / "db.csv"

    count = write_record_cache(_graph(), schema, path)

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert count == 3
    assert rows == [
        ["serial", "ifname", "loc", "owner"],
        ["SN1", "eth0", "rack1", ""],
        ["SN1", "eth1", "", ""],
        ["SN2", "ge1", "", ""],
    ]


def test_updates_cover_recognized_interfaces(tmp_path: Path, schema: RecordSchema) -> None:
    path = tmp_path / "updates.log"
    graph = _graph()

    assert update_lines(graph, schema) == ["10.0.0.1 SN1 eth0 loc=rack1 owner="]
    assert write_updates(graph, schema, NoteLog({"update": path})) == 1
    assert path.read_text(encoding="utf-8").rstrip().endswith("10.0.0.1 SN1 eth0 loc=rack1 owner=")
