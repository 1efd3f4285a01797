"""
NodeSync - Data Models.

Node, Device and Interface make up the entity graph built by discovery
and mutated by reconciliation.

Design Principles:
- Nodes own Devices, Devices own Interfaces (plain dicts keyed by
  address, serial and ifName)
- Back-references are stored as keys (node_ip, device_serial), never as
  object handles, so the graph has no reference cycles
- Serial numbers are upper-cased before they are used as keys
- Conflict queues are not part of the entities; they live in the
  reconciliation pass (see reconcile.py)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class DeviceVendor(str, Enum):
    """Vendor tags understood by the vendor adapters."""
    GENERIC = "generic"
    CISCO = "cisco"
    FOUNDRY = "foundry"
    HP = "hp"
    UNKNOWN = "unknown"


class ConflictKind(str, Enum):
    """Mismatch between an authoritative record and discovered topology."""
    DUPLICATE = "duplicate"     # Two records target one interface
    MISNAMED = "misnamed"       # Record names an interface the device lacks


def normalize_serial(serial: str) -> str:
    """Canonical form of a serial number used as a dict key."""
    return serial.strip().upper()


@dataclass
class NodeInfo:
    """
    Device-info handle collected when a node answers SNMP.

    Populated from the SNMPv2-MIB system group.
    """
    sys_name: Optional[str] = None
    sys_descr: Optional[str] = None
    sys_object_id: Optional[str] = None
    vendor: DeviceVendor = DeviceVendor.UNKNOWN


@dataclass
class Interface:
    """
    One network port on a Device.

    `info` is only ever written from authoritative records; the SNMP
    probe fills in the name alone.
    """
    if_name: str
    device_serial: str
    info: Dict[str, Any] = field(default_factory=dict)
    recognized: bool = False


@dataclass
class Device:
    """One physical chassis or stack member, keyed by serial number."""
    serial: str
    node_ip: str
    interfaces: Dict[str, Interface] = field(default_factory=dict)
    recognized: bool = False

    @property
    def recognized_interfaces(self) -> List[Interface]:
        return [i for i in self.interfaces.values() if i.recognized]

    @property
    def unrecognized_interfaces(self) -> List[Interface]:
        return [i for i in self.interfaces.values() if not i.recognized]


@dataclass
class Node:
    """
    One network endpoint.

    `session` and `info` are opaque handles set by the SNMP connect step;
    `record` keeps the zone line the node was read from.
    """
    ip: str
    hostname: str
    session: Any = None
    info: Optional[NodeInfo] = None
    devices: Dict[str, Device] = field(default_factory=dict)
    record: Optional[str] = None

    @property
    def label(self) -> str:
        """Address and hostname as used in log notes."""
        return f"{self.ip} ({self.hostname})"

    @property
    def is_stack(self) -> bool:
        return len(self.devices) > 1


@dataclass
class Candidate:
    """A node address read from a node source, before probing."""
    ip: str
    hostname: str
    record: Optional[str] = None


@dataclass
class DiscoveryResult:
    """
    Statistics of one discovery pass.

    The nodes themselves live in the EntityGraph; this only counts.
    """
    total_attempted: int = 0
    active: int = 0
    inactive: int = 0
    deviceless: int = 0
    devices: int = 0
    stacks: int = 0
    cancelled: bool = False

    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_attempted': self.total_attempted,
            'active': self.active,
            'inactive': self.inactive,
            'deviceless': self.deviceless,
            'devices': self.devices,
            'stacks': self.stacks,
            'cancelled': self.cancelled,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'duration_seconds': self.duration_seconds,
        }


@dataclass
class ReconcileReport:
    """Outcome of one reconciliation pass."""
    records: int = 0
    skipped: int = 0
    recognized_devices: int = 0
    conflicts: int = 0
    auto: bool = True
    undeployed: List[str] = field(default_factory=list)
    created_interfaces: List[str] = field(default_factory=list)
    discarded: List[str] = field(default_factory=list)
    overwritten: List[str] = field(default_factory=list)
    bogey_devices: List[str] = field(default_factory=list)
    bogey_interfaces: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'records': self.records,
            'skipped': self.skipped,
            'recognized_devices': self.recognized_devices,
            'conflicts': self.conflicts,
            'auto': self.auto,
            'undeployed': self.undeployed,
            'created_interfaces': self.created_interfaces,
            'discarded': self.discarded,
            'overwritten': self.overwritten,
            'bogey_devices': self.bogey_devices,
            'bogey_interfaces': self.bogey_interfaces,
        }
