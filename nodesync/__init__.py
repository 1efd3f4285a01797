"""
NodeSync - Network Device Discovery and Inventory Synchronization.

Discovers devices over SNMP, resolves which physical unit (chassis,
stack member, module) owns each interface, and reconciles the result
with an authoritative inventory.

Architecture:
    nodesync/
    ├── models.py      # Node, Device, Interface dataclasses
    ├── oids.py        # SNMP OID constants
    ├── config.py      # YAML settings
    ├── vendors.py     # Per-vendor serial and port mapping strategies
    ├── topology.py    # serial -> interfaces for one node
    ├── graph.py       # Entity graph construction
    ├── sources.py     # Node lists and zone transfers
    ├── engine.py      # Concurrent discovery
    ├── records.py     # Inventory record sources
    ├── reconcile.py   # Record matching and conflict resolution
    ├── export.py      # Caches and update hand-off
    ├── cli.py         # CLI interface
    └── snmp/          # SNMP sessions and table walks

Quick Start:
    from nodesync import DiscoveryEngine, SNMPClient, Settings, read_node_list

    settings = Settings.from_yaml("etc/nodesync.yaml")
    client = SNMPClient(settings.snmp)
    engine = DiscoveryEngine(client.connect)

    graph, result = await engine.discover(read_node_list("nodes.txt"))
"""

__version__ = "0.1.0"

from .models import (
    Node,
    NodeInfo,
    Device,
    Interface,
    Candidate,
    DiscoveryResult,
    ReconcileReport,
    DeviceVendor,
    ConflictKind,
)

from .config import (
    Settings,
    ConfigurationError,
)

from .graph import (
    EntityGraph,
    initialize_node,
    initialize_device,
    initialize_interface,
)

from .topology import resolve_topology
from .vendors import get_adapter
from .engine import DiscoveryEngine
from .records import RecordSchema, CSVRecordSource, SQLiteRecordSource
from .decisions import ConsoleDecisions, ScriptedDecisions
from .reconcile import Reconciler
from .snmp import SNMPClient, SNMPSession, TableWalker
from .sources import read_node_list, read_zone_lines, zone_transfer


__all__ = [
    '__version__',
    # Models
    'Node',
    'NodeInfo',
    'Device',
    'Interface',
    'Candidate',
    'DiscoveryResult',
    'ReconcileReport',
    'DeviceVendor',
    'ConflictKind',
    # Config
    'Settings',
    'ConfigurationError',
    # Graph
    'EntityGraph',
    'initialize_node',
    'initialize_device',
    'initialize_interface',
    # Topology
    'resolve_topology',
    'get_adapter',
    # Discovery
    'DiscoveryEngine',
    'SNMPClient',
    'SNMPSession',
    'TableWalker',
    'read_node_list',
    'read_zone_lines',
    'zone_transfer',
    # Reconciliation
    'RecordSchema',
    'CSVRecordSource',
    'SQLiteRecordSource',
    'ConsoleDecisions',
    'ScriptedDecisions',
    'Reconciler',
]
