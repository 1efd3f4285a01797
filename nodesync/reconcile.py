"""
NodeSync - Reconciliation.

Matches authoritative records to discovered Devices and Interfaces,
queues the records that do not fit, and resolves the queues under an
automatic or interactive policy.

Record flow:
    validate -> locate device -> detect conflicts -> (later) resolve

Conflict kinds:
- misnamed: the record names an interface the device does not have
- duplicate: the record names an interface another record already matched

Conflict queues live in a side-table keyed by (node address, serial)
and exist only between detection and resolution. Resolution walks nodes
by address, devices by serial, kinds by name, and each queue in arrival
order, draining every queue of a device before moving to the next one.

Usage:
    reconciler = Reconciler(graph, schema, decisions=ConsoleDecisions(), notes=notes)
    report = reconciler.reconcile(CSVRecordSource("db.csv", schema))
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .decisions import DecisionProvider
from .events import EventEmitter, LogLevel
from .graph import EntityGraph, describe_device, describe_interface, initialize_interface
from .models import ConflictKind, Device, Node, ReconcileReport, normalize_serial
from .notes import NoteLog
from .records import Record, RecordSchema

logger = logging.getLogger(__name__)

ConflictQueues = Dict[ConflictKind, List[Record]]

OMIT = 'Omit'
INCLUDE = 'Include'


class Reconciler:
    """
    Reconciliation pass over one EntityGraph.

    Attributes:
        graph: Discovered nodes; only state inside existing nodes changes
        schema: Device, interface and info field names
        decisions: Operator capability; None forces automatic resolution
        notes: Note log sink for the device and bogey logs
        events: EventEmitter for progress reporting
        quiet: Never ask the operator anything
        manual_entry: Offer to fill in info for unrecognized devices
        report: Counters and lists built up by the pass
    """

    def __init__(
        self,
        graph: EntityGraph,
        schema: RecordSchema,
        decisions: Optional[DecisionProvider] = None,
        notes: Optional[NoteLog] = None,
        event_emitter: Optional[EventEmitter] = None,
        quiet: bool = False,
        manual_entry: bool = True,
        verbose: bool = False,
        indent: int = 4,
    ):
        self.graph = graph
        self.schema = schema
        self.decisions = decisions
        self.notes = notes or NoteLog()
        self.events = event_emitter or EventEmitter()
        self.quiet = quiet
        self.manual_entry = manual_entry
        self.verbose = verbose
        self.indent = indent

        self.report = ReconcileReport()

        # serial -> (node, device) for every device a record has matched
        self._recognized: Dict[str, Tuple[Node, Device]] = {}
        # (node ip, serial) -> kind -> queued records
        self._conflicts: Dict[Tuple[str, str], ConflictQueues] = {}

    @property
    def pending_conflicts(self) -> int:
        """Records still waiting in conflict queues."""
        return sum(
            len(queue)
            for queues in self._conflicts.values()
            for queue in queues.values()
        )

    # =========================================================================
    # Matching
    # =========================================================================

    def validate(self, record: Mapping) -> bool:
        return self.schema.is_valid(record)

    def locate(self, serial: str) -> Optional[Tuple[Node, Device]]:
        """
        Find the device a record's serial refers to.

        The first match marks the device recognized, is cached, and is
        written to the device log. A serial no node holds is written to
        the device log as undeployed.
        """
        serial = normalize_serial(serial)

        found = self._recognized.get(serial)
        if found is not None:
            return found

        found = self.graph.find_device(serial)
        if found is None:
            self.notes.note('device', f"{serial} undeployed")
            if serial not in self.report.undeployed:
                self.report.undeployed.append(serial)
            self.events.record_undeployed(serial)
            return None

        node, device = found
        device.recognized = True
        self._recognized[serial] = found
        self.notes.note('device', f"{serial} @ {node.label}")
        self.events.device_recognized(serial, node.ip, node.hostname)
        if self.verbose:
            self.events.log(describe_device(device, node, self.indent), LogLevel.DEBUG, node.ip)
        return found

    def _queue(self, node: Node, device: Device, kind: ConflictKind, record: Record) -> None:
        queues = self._conflicts.setdefault((node.ip, device.serial), {})
        queues.setdefault(kind, []).append(record)

    def detect_conflicts(self, node: Node, device: Device, records: Iterable[Record]) -> int:
        """
        Match records against a device's interfaces.

        A record for an unknown interface is queued as misnamed, one for
        an interface already recognized is queued as duplicate. Any other
        record writes its info fields to the interface and marks it
        recognized.

        Returns:
            Number of records queued
        """
        count = 0
        for record in records:
            if_name = str(record[self.schema.interface_field]).strip()
            interface = device.interfaces.get(if_name)

            if interface is None:
                self._queue(node, device, ConflictKind.MISNAMED, record)
                count += 1
            elif interface.recognized:
                self._queue(node, device, ConflictKind.DUPLICATE, record)
                count += 1
            else:
                interface.info.update(self.schema.info(record))
                interface.recognized = True
                if self.verbose:
                    self.events.log(describe_interface(interface, node, self.indent), LogLevel.DEBUG, node.ip)

        return count

    def synchronize(self, records: Iterable[Mapping]) -> int:
        """
        Run every record through validate, locate and detect_conflicts.

        Returns:
            Number of conflicts queued
        """
        conflicts = 0
        for record in records:
            if not self.validate(record):
                self.report.skipped += 1
                continue

            self.report.records += 1
            found = self.locate(str(record[self.schema.device_field]))
            if found is None:
                continue

            node, device = found
            conflicts += self.detect_conflicts(node, device, [dict(record)])

        self.report.conflicts += conflicts
        self.report.recognized_devices = len(self._recognized)
        return conflicts

    # =========================================================================
    # Resolution
    # =========================================================================

    def choose_policy(self, conflicts: int) -> bool:
        """
        Decide between automatic (True) and interactive (False) resolution.

        Quiet runs and runs without a decision provider are automatic.
        Otherwise, when there are conflicts, the operator is asked whether
        to resolve them now; declining selects automatic resolution.
        """
        if self.quiet or self.decisions is None:
            return True
        if conflicts > 0:
            return not self.decisions.ask("Do you want to resolve conflicts now?")
        return False

    def _resolve_misnamed(self, node: Node, device: Device, record: Record, auto: bool) -> None:
        if_name = str(record[self.schema.interface_field]).strip()

        accept = auto
        if not auto:
            message = (f"There is a misnamed interface in the database ({if_name}) "
                       f"for {device.serial} at {node.label}.")
            accept = self.decisions.choose(message, [OMIT, INCLUDE]) == INCLUDE

        if accept:
            interface = initialize_interface(device, if_name, self.schema.info(record))
            interface.recognized = True
            self.report.created_interfaces.append(f"{device.serial} {if_name}")
        else:
            self.report.discarded.append(f"{device.serial} {if_name}")

    def _resolve_duplicate(self, node: Node, device: Device, record: Record, auto: bool) -> None:
        if_name = str(record[self.schema.interface_field]).strip()
        interface = device.interfaces[if_name]
        incoming = self.schema.info(record)

        overwrite = auto
        if not auto:
            message = (f"There is more than one entry in the database with information "
                       f"for {if_name} on {device.serial} at {node.label}.")
            old = '(old) ' + ', '.join(
                _text(interface.info.get(name)) for name in self.schema.info_fields
            )
            new = '(new) ' + ', '.join(
                _text(incoming.get(name)) for name in self.schema.info_fields
            )
            overwrite = self.decisions.choose(message, [old, new]) == new

        if overwrite:
            interface.info.update(incoming)
            self.report.overwritten.append(f"{device.serial} {if_name}")
        else:
            self.report.discarded.append(f"{device.serial} {if_name}")

    def _report_bogey_interfaces(self, node: Node, device: Device) -> None:
        for if_name in sorted(device.interfaces):
            if device.interfaces[if_name].recognized:
                continue
            self.notes.note('bogey', f"{node.label} {device.serial} {if_name}")
            self.report.bogey_interfaces.append(f"{device.serial} {if_name}")
            self.events.bogey_interface(device.serial, if_name, node.ip, node.hostname)

    def _report_bogey_device(self, node: Node, device: Device, auto: bool) -> None:
        self.notes.note('bogey', f"{node.label} {device.serial}")
        self.report.bogey_devices.append(device.serial)
        self.events.bogey_device(device.serial, node.ip, node.hostname)

        if auto or not self.manual_entry or self.decisions is None:
            return

        if not self.decisions.ask(
            f"A new device ({device.serial}) on {node.hostname} is not present in the "
            f"database. Would you like to initialize it now?"
        ):
            return

        pad = ' ' * self.indent
        for if_name in sorted(device.interfaces):
            self.events.log(f"An interface ({if_name}) for {device.serial} on {node.hostname} "
                            f"is missing information.", LogLevel.WARNING, node.ip)
            fields = {name: self.decisions.prompt(f"{pad}{name}: ") for name in self.schema.info_fields}
            initialize_interface(device, if_name, fields)

    def resolve_conflicts(self, auto: bool) -> None:
        """
        Drain every conflict queue and report bogies.

        Under automatic policy misnamed records create their interface
        and duplicate records overwrite the earlier values. Under
        interactive policy the decision provider picks each outcome.
        """
        if not auto and self.decisions is None:
            raise ValueError("interactive resolution needs a decision provider")

        for node, device in self.graph.devices():
            key = (node.ip, device.serial)

            if not device.recognized:
                self._conflicts.pop(key, None)
                self._report_bogey_device(node, device, auto)
                continue

            queues = self._conflicts.get(key, {})
            for kind in sorted(queues, key=lambda k: k.value):
                queue = queues[kind]
                while queue:
                    record = queue.pop(0)
                    if kind == ConflictKind.MISNAMED:
                        self._resolve_misnamed(node, device, record, auto)
                    else:
                        self._resolve_duplicate(node, device, record, auto)
            self._conflicts.pop(key, None)

            self._report_bogey_interfaces(node, device)

    # =========================================================================
    # Whole pass
    # =========================================================================

    def reconcile(self, records: Iterable[Mapping], source: str = "") -> ReconcileReport:
        """
        Synchronize all records, pick the policy, resolve conflicts.

        Returns:
            The pass report
        """
        self.events.identify_started(source or str(records))

        conflicts = self.synchronize(records)
        auto = self.choose_policy(conflicts)
        self.report.auto = auto

        self.resolve_conflicts(auto)

        self.events.identify_complete(self.report.to_dict())
        return self.report


def _text(value) -> str:
    return '' if value is None else str(value)
