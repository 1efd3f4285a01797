"""
NodeSync - Topology Resolver.

Maps the interfaces one node reports to the physical units (serials)
that own them. Nothing here touches the entity graph.
"""

import logging
from typing import Dict, List, Optional, Union

from .models import DeviceVendor, normalize_serial
from .oids import INTERFACES
from .snmp.parsers import decode_int
from .snmp.walker import TableWalker
from .vendors import get_adapter

logger = logging.getLogger(__name__)


async def physical_interfaces(session, walker: TableWalker) -> Dict[str, str]:
    """
    Build ifIndex -> ifName for interfaces that can belong to a unit.

    Types 1 (other), 24 (softwareLoopback) and 53 (propVirtual) are left
    out. Anything other than those and 6 (ethernetCsmacd) is kept but
    reported.
    """
    types = await walker.walk_map(INTERFACES.TYPE_CANDIDATES, session)
    names = await walker.walk_map(INTERFACES.NAME_CANDIDATES, session)

    interfaces: Dict[str, str] = {}
    for if_index, if_name in names.items():
        if_type = decode_int(types.get(if_index))
        if if_type is None or not if_name:
            logger.warning(f"{session!r}: malformed IF-MIB row at ifIndex {if_index}")
            continue

        if if_type not in INTERFACES.EXPECTED_TYPES:
            logger.warning(
                f"{session!r}: a foreign ifType ({if_type}) has been "
                f"encountered on interface {if_name}"
            )

        if if_type not in INTERFACES.EXCLUDED_TYPES:
            interfaces[if_index] = if_name

    return interfaces


async def resolve_topology(
    vendor: Union[DeviceVendor, str, None],
    session,
    walker: Optional[TableWalker] = None,
) -> Optional[Dict[str, List[str]]]:
    """
    Resolve serial -> [ifName] for one node.

    Args:
        vendor: Vendor tag used when ENTITY-MIB has no usable serials
        session: Open SNMP session to the node
        walker: Table walker (a default one is created if not provided)

    Returns:
        Normalized serial to interface names in agent order, or None when no
        serial could be found

    Interfaces the vendor mapping does not cover are left out. A
    multi-unit node whose vendor has no mapping resolves to an empty
    dict.
    """
    walker = walker or TableWalker()

    interfaces = await physical_interfaces(session, walker)

    serials = await get_adapter(DeviceVendor.GENERIC, walker).enumerate_serials(session)
    adapter = get_adapter(vendor, walker)
    if not serials:
        serials = await adapter.enumerate_serials(session)
        if not serials:
            logger.warning(f"{session!r}: no serials could be found for a {adapter.vendor.value} device")
            return None

    # Serials differing only in case name the same unit
    serials = list(dict.fromkeys(normalize_serial(serial) for serial in serials))

    if len(serials) == 1:
        return {serials[0]: list(interfaces.values())}

    if_to_serial = await adapter.map_interfaces_to_serial(session)

    topology: Dict[str, List[str]] = {}
    for if_index, if_name in interfaces.items():
        serial = if_to_serial.get(if_index)
        if not serial:
            logger.debug(f"{session!r}: {if_name} is not mapped to a unit")
            continue
        topology.setdefault(normalize_serial(serial), []).append(if_name)

    return topology
