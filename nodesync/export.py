"""
NodeSync - Export.

Output artifacts handed on after each stage:

- node cache: RFC1035-style list of the active nodes, usable as a node
  list on a later run
- record cache: RFC4180 table of serial, interface and info fields, one
  row per interface, usable as a record file on a later run
- update log: one line per recognized interface for the updater
"""

import csv
import ipaddress
import logging
from pathlib import Path
from typing import Iterator, List, Union

from .graph import EntityGraph
from .models import Node
from .notes import NoteLog
from .records import RecordSchema

logger = logging.getLogger(__name__)


def node_record(node: Node) -> str:
    """The zone line a node was read from, or a synthesized one."""
    if node.record:
        return node.record
    rdtype = 'AAAA' if ipaddress.ip_address(node.ip).version == 6 else 'A'
    return f"{node.hostname} IN {rdtype} {node.ip}"


def node_cache_lines(graph: EntityGraph) -> List[str]:
    return [node_record(node) for node in graph]


def record_rows(graph: EntityGraph, schema: RecordSchema) -> Iterator[List[str]]:
    """Header row, then one row per interface in address/serial/name order."""
    yield [schema.device_field, schema.interface_field] + list(schema.info_fields)

    for _, device, interface in graph.interfaces():
        row = [device.serial, interface.if_name]
        for name in schema.info_fields:
            value = interface.info.get(name)
            row.append('' if value is None else str(value))
        yield row


def update_lines(graph: EntityGraph, schema: RecordSchema) -> List[str]:
    lines = []
    for node, device, interface in graph.interfaces():
        if not interface.recognized:
            continue
        fields = ' '.join(
            f"{name}={'' if interface.info.get(name) is None else interface.info.get(name)}"
            for name in schema.info_fields
        )
        lines.append(f"{node.ip} {device.serial} {interface.if_name} {fields}".rstrip())
    return lines


def write_node_cache(graph: EntityGraph, notes: NoteLog) -> None:
    notes.rewrite('node_cache', node_cache_lines(graph))
    logger.info(f"wrote {len(graph)} nodes to {notes.path('node_cache')}")


def write_record_cache(graph: EntityGraph, schema: RecordSchema, path: Union[str, Path]) -> int:
    """
    Write the record cache.

    Returns:
        Number of interface rows written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = -1
    with open(path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        for row in record_rows(graph, schema):
            writer.writerow(row)
            count += 1

    logger.info(f"wrote {count} interfaces to {path}")
    return count


def write_updates(graph: EntityGraph, schema: RecordSchema, notes: NoteLog) -> int:
    """Append one stamped update line per recognized interface."""
    lines = update_lines(graph, schema)
    for line in lines:
        notes.note('update', line)
    return len(lines)
