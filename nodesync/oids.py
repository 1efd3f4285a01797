"""
NodeSync - SNMP OID Constants.

Centralized OID definitions for topology resolution.

Organization:
- SNMPv2-MIB: System group (sysDescr, sysObjectID, sysName)
- IF-MIB: Interface type and name tables
- ENTITY-MIB: Physical entity serials and classes
- CISCO-STACK-MIB: Module serials and port/module mapping
- FOUNDRY-SN-AGENT-MIB / FOUNDRY-SN-SWITCH-GROUP-MIB: Stack unit serials
- SEMI-MIB / HP-SN-AGENT-MIB: HP serials (no port mapping)

Usage:
    from nodesync.oids import INTERFACES, ENTITY, Column

    names = await walker.walk(INTERFACES.NAME_CANDIDATES, session)

Notes:
- Numeric OIDs only; values must match the agents exactly.
- Every table column is paired with its MIB label in a Column so that
  walks and diagnostics can name what they are reading.
"""

from typing import NamedTuple, Tuple


class Column(NamedTuple):
    """A table column OID and the MIB label it is known by."""
    oid: str
    label: str


Candidates = Tuple[Column, ...]


# =============================================================================
# SNMPv2-MIB - System Group
# =============================================================================

class SYSTEM:
    """
    SNMPv2-MIB System Group OIDs.

    Base: 1.3.6.1.2.1.1 (iso.org.dod.internet.mgmt.mib-2.system)
    """
    SYS_DESCR = "1.3.6.1.2.1.1.1.0"           # System description string
    SYS_OBJECT_ID = "1.3.6.1.2.1.1.2.0"       # Vendor's authoritative ID
    SYS_NAME = "1.3.6.1.2.1.1.5.0"            # Administratively assigned name


# =============================================================================
# IF-MIB - Interface Tables
# =============================================================================

class INTERFACES:
    """
    IF-MIB interface OIDs.

    Index: ifIndex (integer)
    """
    IF_DESCR = Column("1.3.6.1.2.1.2.2.1.2", "ifDescr")
    IF_TYPE = Column("1.3.6.1.2.1.2.2.1.3", "ifType")
    IF_NAME = Column("1.3.6.1.2.1.31.1.1.1.1", "ifName")

    TYPE_CANDIDATES: Candidates = (IF_TYPE,)
    # ifName is preferred, ifDescr covers agents without ifXTable
    NAME_CANDIDATES: Candidates = (IF_NAME, IF_DESCR)

    # IANAifType values
    TYPE_OTHER = 1
    TYPE_ETHERNET = 6
    TYPE_LOOPBACK = 24
    TYPE_PROP_VIRTUAL = 53

    EXCLUDED_TYPES = frozenset({TYPE_OTHER, TYPE_LOOPBACK, TYPE_PROP_VIRTUAL})
    EXPECTED_TYPES = frozenset({TYPE_OTHER, TYPE_ETHERNET, TYPE_LOOPBACK, TYPE_PROP_VIRTUAL})


# =============================================================================
# ENTITY-MIB - Physical Table
# =============================================================================

class ENTITY:
    """
    ENTITY-MIB OIDs for physical entity information.

    Index: entPhysicalIndex
    Not all devices support this MIB.
    """
    PHYS_CLASS = Column("1.3.6.1.2.1.47.1.1.1.1.5", "entPhysicalClass")
    PHYS_SERIAL_NUM = Column("1.3.6.1.2.1.47.1.1.1.1.11", "entPhysicalSerialNum")

    # Physical class values
    CLASS_OTHER = 1
    CLASS_UNKNOWN = 2
    CLASS_CHASSIS = 3
    CLASS_BACKPLANE = 4
    CLASS_CONTAINER = 5
    CLASS_POWER_SUPPLY = 6
    CLASS_FAN = 7
    CLASS_SENSOR = 8
    CLASS_MODULE = 9
    CLASS_PORT = 10
    CLASS_STACK = 11

    # Entries counted as stack members / modules
    SERIAL_CLASS = CLASS_CHASSIS


# =============================================================================
# CISCO-STACK-MIB
# =============================================================================

class CISCO_STACK:
    """
    CISCO-STACK-MIB OIDs.

    moduleTable index: moduleIndex
    portTable index: portModuleIndex.portIndex
    """
    MODULE_SERIAL = Column("1.3.6.1.4.1.9.5.1.3.1.1.3", "moduleSerialNumber")
    MODULE_SERIAL_STRING = Column("1.3.6.1.4.1.9.5.1.3.1.1.26", "moduleSerialNumberString")
    PORT_MODULE_INDEX = Column("1.3.6.1.4.1.9.5.1.4.1.1.1", "portModuleIndex")
    PORT_IF_INDEX = Column("1.3.6.1.4.1.9.5.1.4.1.1.11", "portIfIndex")

    SERIAL_CANDIDATES: Candidates = (MODULE_SERIAL, MODULE_SERIAL_STRING)


# =============================================================================
# FOUNDRY-SN-AGENT-MIB / FOUNDRY-SN-SWITCH-GROUP-MIB
# =============================================================================

class FOUNDRY:
    """
    Foundry (Brocade) OIDs.

    snChasUnitTable index: snChasUnitIndex (stack unit number)
    snSwPortInfoTable index: snSwPortInfoPortNum
    snSwPortDescr values look like "unit/slot/port".
    """
    CHASSIS_UNIT_SERIAL = Column("1.3.6.1.4.1.1991.1.1.1.4.1.1.2", "snChasUnitSerNum")
    CHASSIS_SERIAL = Column("1.3.6.1.4.1.1991.1.1.1.1.2", "snChasSerNum")
    PORT_IF_INDEX = Column("1.3.6.1.4.1.1991.1.1.3.3.1.1.38", "snSwPortIfIndex")
    PORT_DESCR = Column("1.3.6.1.4.1.1991.1.1.3.3.1.1.39", "snSwPortDescr")

    # The stackless chassis serial is the fallback
    SERIAL_CANDIDATES: Candidates = (CHASSIS_UNIT_SERIAL, CHASSIS_SERIAL)
    UNIT_CANDIDATES: Candidates = (CHASSIS_UNIT_SERIAL,)


# =============================================================================
# SEMI-MIB / HP-SN-AGENT-MIB
# =============================================================================

class HP:
    """HP serial number OIDs. HP agents expose no port-to-unit mapping."""
    DEVICE_SERIAL = Column("1.3.6.1.4.1.11.2.36.1.1.5.1.1.10", "hpHttpMgDeviceSerialNumber")
    SERIAL = Column("1.3.6.1.4.1.11.2.36.1.1.2.9", "hpHttpMgSerialNumber")
    CHASSIS_SERIAL = Column("1.3.6.1.4.1.11.2.3.7.11.12.1.1.1.2", "snChasSerNum")

    SERIAL_CANDIDATES: Candidates = (DEVICE_SERIAL, SERIAL, CHASSIS_SERIAL)


# =============================================================================
# Enterprise numbers (sysObjectID prefixes)
# =============================================================================

ENTERPRISES = "1.3.6.1.4.1"

ENTERPRISE_VENDORS = {
    9: "cisco",
    11: "hp",
    1991: "foundry",
}
