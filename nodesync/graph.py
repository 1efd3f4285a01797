"""
NodeSync - Entity Graph.

Holds the active Nodes by address and indexes their Devices by serial.
Construction helpers (initialize_node / initialize_device /
initialize_interface) are idempotent upserts; nothing here ever deletes
a Device or an Interface.

Usage:
    graph = EntityGraph()
    serials = await initialize_node(node)
    if serials:
        graph.add_node(node)

    device = graph.find_device("fox1234abcd")
"""

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .models import Device, Interface, Node, normalize_serial
from .snmp.walker import TableWalker
from .topology import resolve_topology

logger = logging.getLogger(__name__)


# =============================================================================
# Construction
# =============================================================================

def initialize_interface(
    device: Device,
    if_name: str,
    fields: Optional[Mapping[str, Any]] = None,
) -> Interface:
    """
    Create or update an Interface on a Device.

    Fields are merged into `info`. An interface given fields is marked
    recognized; a new one without fields starts unrecognized, and an
    existing one keeps its state.
    """
    interface = device.interfaces.get(if_name)
    if interface is None:
        interface = Interface(if_name=if_name, device_serial=device.serial)
        device.interfaces[if_name] = interface

    if fields:
        interface.info.update(fields)
        interface.recognized = True

    return interface


def initialize_device(
    node: Node,
    serial: str,
    if_names: Optional[List[str]] = None,
) -> Device:
    """
    Create or update a Device on a Node.

    The serial is normalized before use. Existing interfaces and the
    recognized flag of an existing device are left alone.
    """
    serial = normalize_serial(serial)

    device = node.devices.get(serial)
    if device is None:
        device = Device(serial=serial, node_ip=node.ip)
        node.devices[serial] = device

    for if_name in if_names or []:
        initialize_interface(device, if_name)

    return device


async def initialize_node(node: Node, walker: Optional[TableWalker] = None) -> List[str]:
    """
    Resolve a probed node's topology and create its Devices.

    Args:
        node: Node with session and info set by connect()
        walker: Table walker shared across probes

    Returns:
        Serials created, in resolution order; empty if the node has no
        session or its topology could not be resolved
    """
    if node.session is None or node.info is None:
        return []

    topology = await resolve_topology(node.info.vendor, node.session, walker)
    if not topology:
        return []

    serials: List[str] = []
    for serial, if_names in topology.items():
        device = initialize_device(node, serial, if_names)
        if device.serial not in serials:
            serials.append(device.serial)

    return serials


# =============================================================================
# Graph
# =============================================================================

class EntityGraph:
    """
    The active node set.

    Back-references are keys: a Device names its node by address, an
    Interface names its device by serial. The serial index keeps each
    serial under a single Node.
    """

    def __init__(self):
        self.nodes: Dict[str, Node] = {}
        self._serials: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, ip: str) -> bool:
        return ip in self.nodes

    def __iter__(self) -> Iterator[Node]:
        """Nodes in address order."""
        for ip in sorted(self.nodes):
            yield self.nodes[ip]

    def add_node(self, node: Node) -> List[str]:
        """
        Insert a node with its devices.

        Devices whose serial is already held by another node are dropped
        from the incoming node (first match wins).

        Returns:
            Serials accepted; empty if the node was not inserted
        """
        if node.ip in self.nodes and self.nodes[node.ip] is not node:
            logger.warning(f"{node.label} is already in the graph, ignoring")
            return []

        for serial in list(node.devices):
            owner = self._serials.get(serial)
            if owner is not None and owner != node.ip:
                logger.warning(
                    f"{serial} on {node.label} is already held by {owner}, ignoring"
                )
                del node.devices[serial]

        if not node.devices:
            return []

        self.nodes[node.ip] = node
        for serial in node.devices:
            self._serials[serial] = node.ip

        return list(node.devices)

    def find_device(self, serial: str) -> Optional[Tuple[Node, Device]]:
        """Look up a serial (any case) and return its (node, device)."""
        ip = self._serials.get(normalize_serial(serial))
        if ip is None:
            return None
        node = self.nodes[ip]
        return node, node.devices[normalize_serial(serial)]

    def devices(self) -> Iterator[Tuple[Node, Device]]:
        """(node, device) pairs in address then serial order."""
        for node in self:
            for serial in sorted(node.devices):
                yield node, node.devices[serial]

    def interfaces(self) -> Iterator[Tuple[Node, Device, Interface]]:
        for node, device in self.devices():
            for if_name in sorted(device.interfaces):
                yield node, device, device.interfaces[if_name]

    @property
    def device_count(self) -> int:
        return sum(len(node.devices) for node in self.nodes.values())

    @property
    def stack_count(self) -> int:
        return sum(1 for node in self.nodes.values() if node.is_stack)


# =============================================================================
# Text dumps (verbose output)
# =============================================================================

def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def describe_node(node: Node, indent: int = 4) -> str:
    pad = ' ' * indent
    lines = [node.label]

    devices = list(node.devices.values())
    recognized_devices = sum(1 for d in devices if d.recognized)
    interfaces = [i for d in devices for i in d.interfaces.values()]
    recognized_interfaces = sum(1 for i in interfaces if i.recognized)

    line = pad + _plural(len(devices), 'device')
    if recognized_devices:
        line += f" ({recognized_devices} recognized)"
    lines.append(line)

    line = pad + _plural(len(interfaces), 'interface')
    if recognized_interfaces:
        line += f" ({recognized_interfaces} recognized)"
    lines.append(line)

    if node.info is not None and len(devices) == 1:
        lines.append(pad + f"{node.info.vendor.value} {node.info.sys_name or ''}".rstrip())
        lines.append(pad + devices[0].serial)

    return '\n'.join(lines)


def describe_device(device: Device, node: Node, indent: int = 4) -> str:
    pad = ' ' * indent
    recognized = len(device.recognized_interfaces)
    return '\n'.join([
        f"{device.serial} at {node.label}",
        pad + _plural(len(device.interfaces), 'interface') + f" ({recognized} recognized)",
    ])


def describe_interface(interface: Interface, node: Node, indent: int = 4) -> str:
    pad = ' ' * indent
    lines = [f"{interface.if_name} on {interface.device_serial} at {node.label}"]
    for name in sorted(interface.info):
        lines.append(pad + f"{name}: {interface.info[name]}")
    return '\n'.join(lines)
