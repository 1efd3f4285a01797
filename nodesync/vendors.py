"""
NodeSync - Vendor Adapters.

Per-vendor strategies for the two questions topology resolution asks
an agent:

- enumerate_serials: which physical units (chassis, stack members,
  modules) does this node have?
- map_interfaces_to_serial: which unit does each ifIndex live on?

Adapters:
- GenericAdapter: ENTITY-MIB physical table, no interface mapping
- CiscoAdapter: CISCO-STACK-MIB module and port tables
- FoundryAdapter: snChasUnitTable + snSwPortInfoTable ("unit/slot/port")
- HPAdapter: SEMI-MIB / HP-SN-AGENT-MIB serials, no interface mapping
- NullAdapter: unknown vendors; answers with nothing

Usage:
    adapter = get_adapter("cisco")
    serials = await adapter.enumerate_serials(session)
    if_to_serial = await adapter.map_interfaces_to_serial(session)

Joins between tables are made on SNMP row indexes, never on the order
rows came back in.
"""

import logging
import re
from typing import Dict, List, Optional, Union

from .models import DeviceVendor
from .oids import CISCO_STACK, ENTITY, FOUNDRY, HP, Candidates
from .snmp.parsers import decode_int
from .snmp.walker import TableWalker

logger = logging.getLogger(__name__)

# snSwPortDescr: leading stack unit number followed by /slot/port parts
FOUNDRY_PORT_PATTERN = re.compile(r'^(?P<unit>\d+)(/\d+)+$')


def _serials_from(values: List[str]) -> List[str]:
    """Drop blank serials, keep agent order."""
    return [v for v in values if v]


class VendorAdapter:
    """
    Base adapter. Both capabilities are optional; the defaults report
    the missing capability and return an empty result.
    """

    vendor = DeviceVendor.UNKNOWN
    serial_candidates: Candidates = ()

    def __init__(self, walker: Optional[TableWalker] = None):
        self.walker = walker or TableWalker()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"

    async def enumerate_serials(self, session) -> List[str]:
        """Walk the vendor serial tables in order until one yields values."""
        if not self.serial_candidates:
            logger.warning(
                f"{session!r}: serial retrieval attempted on an unsupported "
                f"device vendor ({self.vendor.value})"
            )
            return []

        result = await self.walker.walk(self.serial_candidates, session)
        if result is None:
            return []

        values, _ = result
        return _serials_from(values)

    async def map_interfaces_to_serial(self, session) -> Dict[str, str]:
        """
        Map ifIndex -> unit serial.

        Returns:
            Dict keyed by ifIndex (as returned by the agent); empty when
            the vendor has no mapping tables
        """
        logger.warning(
            f"{session!r}: interface mapping attempted on an unsupported "
            f"device vendor ({self.vendor.value})"
        )
        return {}


class GenericAdapter(VendorAdapter):
    """ENTITY-MIB physical table, filtered by physical class."""

    vendor = DeviceVendor.GENERIC

    async def enumerate_serials(self, session) -> List[str]:
        serials = await self.walker.walk_map((ENTITY.PHYS_SERIAL_NUM,), session)
        if not serials:
            return []

        classes = await self.walker.walk_map((ENTITY.PHYS_CLASS,), session)

        found = []
        for index, serial in serials.items():
            if decode_int(classes.get(index)) == ENTITY.SERIAL_CLASS and serial:
                found.append(serial)
        return found


class CiscoAdapter(VendorAdapter):
    """
    CISCO-STACK-MIB.

    portTable rows (module.port) give portIfIndex and portModuleIndex;
    moduleTable rows (module) give the serial.
    """

    vendor = DeviceVendor.CISCO
    serial_candidates = CISCO_STACK.SERIAL_CANDIDATES

    async def map_interfaces_to_serial(self, session) -> Dict[str, str]:
        port_to_if = await self.walker.walk_map((CISCO_STACK.PORT_IF_INDEX,), session)
        port_to_module = await self.walker.walk_map((CISCO_STACK.PORT_MODULE_INDEX,), session)
        module_to_serial = await self.walker.walk_map(CISCO_STACK.SERIAL_CANDIDATES, session)

        if_to_serial: Dict[str, str] = {}
        for port, if_index in port_to_if.items():
            module = port_to_module.get(port)
            serial = module_to_serial.get(module) if module is not None else None
            if serial:
                if_to_serial[if_index] = serial
            else:
                logger.debug(f"{session!r}: port {port} (ifIndex {if_index}) has no module serial")
        return if_to_serial


class FoundryAdapter(VendorAdapter):
    """
    Foundry / Brocade stacks.

    snSwPortDescr carries "unit/slot/port"; the unit number is the
    snChasUnitTable row holding that member's serial.
    """

    vendor = DeviceVendor.FOUNDRY
    serial_candidates = FOUNDRY.SERIAL_CANDIDATES

    async def map_interfaces_to_serial(self, session) -> Dict[str, str]:
        port_to_if = await self.walker.walk_map((FOUNDRY.PORT_IF_INDEX,), session)
        port_to_descr = await self.walker.walk_map((FOUNDRY.PORT_DESCR,), session)
        unit_to_serial = await self.walker.walk_map(FOUNDRY.UNIT_CANDIDATES, session)

        if_to_serial: Dict[str, str] = {}
        for port, if_index in port_to_if.items():
            match = FOUNDRY_PORT_PATTERN.match(port_to_descr.get(port, ''))
            if not match:
                continue
            serial = unit_to_serial.get(match.group('unit'))
            if serial:
                if_to_serial[if_index] = serial
        return if_to_serial


class HPAdapter(VendorAdapter):
    """HP serial tables. HP agents expose no port-to-unit mapping."""

    vendor = DeviceVendor.HP
    serial_candidates = HP.SERIAL_CANDIDATES


class NullAdapter(VendorAdapter):
    """Unknown vendor tags resolve here."""


# =============================================================================
# Registry
# =============================================================================

ADAPTERS = {
    DeviceVendor.GENERIC: GenericAdapter,
    DeviceVendor.CISCO: CiscoAdapter,
    DeviceVendor.FOUNDRY: FoundryAdapter,
    DeviceVendor.HP: HPAdapter,
}


def get_adapter(
    vendor: Union[DeviceVendor, str, None],
    walker: Optional[TableWalker] = None,
) -> VendorAdapter:
    """
    Look up the adapter for a vendor tag.

    Unknown tags get a NullAdapter carrying the tag, so diagnostics can
    still name the vendor.
    """
    try:
        tag = DeviceVendor(vendor) if vendor is not None else DeviceVendor.UNKNOWN
    except ValueError:
        logger.debug(f"unknown vendor tag {vendor!r}")
        tag = DeviceVendor.UNKNOWN

    adapter_class = ADAPTERS.get(tag, NullAdapter)
    adapter = adapter_class(walker)
    if isinstance(adapter, NullAdapter):
        adapter.vendor = tag
    return adapter
