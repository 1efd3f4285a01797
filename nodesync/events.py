"""
NodeSync - Event System.

Structured events emitted by discovery and identification. The CLI
subscribes a ConsoleEventPrinter; tests subscribe plain callbacks.

Event Flow:
    discovery_started -> node_active/node_inactive/node_deviceless* ->
    discovery_complete -> identify_started -> device_recognized* ->
    record_undeployed* -> bogey_device/bogey_interface* -> identify_complete
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Event types."""
    # Discovery lifecycle
    DISCOVERY_STARTED = "discovery_started"
    DISCOVERY_COMPLETE = "discovery_complete"
    DISCOVERY_CANCELLED = "discovery_cancelled"

    # Per-node outcome
    NODE_ACTIVE = "node_active"
    NODE_INACTIVE = "node_inactive"
    NODE_DEVICELESS = "node_deviceless"

    # Identification lifecycle
    IDENTIFY_STARTED = "identify_started"
    IDENTIFY_COMPLETE = "identify_complete"

    # Record matching
    DEVICE_RECOGNIZED = "device_recognized"
    RECORD_UNDEPLOYED = "record_undeployed"
    BOGEY_DEVICE = "bogey_device"
    BOGEY_INTERFACE = "bogey_interface"

    # Free-form messages
    LOG_MESSAGE = "log_message"


class LogLevel(str, Enum):
    """Severity of a free-form log event."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


@dataclass
class SyncStats:
    """Running counters for one run."""
    candidates: int = 0
    probed: int = 0
    active: int = 0
    inactive: int = 0
    deviceless: int = 0
    devices: int = 0
    stacks: int = 0


@dataclass
class SyncEvent:
    """
    Event emitted during a run.

    Carries its type, the emission time and a free-form payload.
    """
    event_type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return self.data.get("message", "")

    @property
    def target(self) -> str:
        return self.data.get("target", "")


# Listener signature
EventCallback = Callable[[SyncEvent], None]


class EventEmitter:
    """
    Event emitter for discovery and identification.

    Usage:
        emitter = EventEmitter()

        # Subscribe to all events
        emitter.subscribe(my_handler)

        # Only undeployed records
        emitter.subscribe(undeployed_handler, EventType.RECORD_UNDEPLOYED)

        # Emit events
        emitter.emit(EventType.NODE_INACTIVE, target="10.0.0.1")
    """

    def __init__(self):
        self._listeners: List[Tuple[EventCallback, Optional[EventType]]] = []
        self._stats = SyncStats()

    @property
    def stats(self) -> SyncStats:
        return self._stats

    def reset_stats(self) -> None:
        self._stats = SyncStats()

    def subscribe(
        self,
        callback: EventCallback,
        event_type: Optional[EventType] = None
    ) -> None:
        """
        Subscribe to events.

        Args:
            callback: Function to call with SyncEvent
            event_type: If specified, only receive this event type
        """
        self._listeners.append((callback, event_type))

    def emit(self, event_type: EventType, **data) -> SyncEvent:
        """
        Deliver an event to every listener whose filter matches.

        Args:
            event_type: Type of event
            **data: Event-specific data

        Returns:
            The emitted event
        """
        event = SyncEvent(
            event_type=event_type,
            timestamp=datetime.now(),
            data=data
        )

        for callback, filter_type in self._listeners:
            if filter_type is None or filter_type == event_type:
                try:
                    callback(event)
                except Exception as e:
                    # Don't let listener errors break the run
                    logger.warning(f"Event listener error: {e}")

        return event

    # =========================================================================
    # Typed emitters, one per event the pipeline raises
    # =========================================================================

    def discovery_started(self, candidates: int, concurrency: int, probe_timeout: float) -> None:
        """Emit discovery started event and reset stats."""
        self.reset_stats()
        self._stats.candidates = candidates

        self.emit(
            EventType.DISCOVERY_STARTED,
            candidates=candidates,
            concurrency=concurrency,
            probe_timeout=probe_timeout,
        )

    def discovery_complete(self, result: Dict[str, Any]) -> None:
        self.emit(EventType.DISCOVERY_COMPLETE, **result)

    def discovery_cancelled(self) -> None:
        self.emit(EventType.DISCOVERY_CANCELLED)

    def node_active(self, target: str, hostname: str, serials: List[str], vendor: str) -> None:
        """Emit node accepted into the graph."""
        self._stats.probed += 1
        self._stats.active += 1
        self._stats.devices += len(serials)
        if len(serials) > 1:
            self._stats.stacks += 1

        self.emit(
            EventType.NODE_ACTIVE,
            target=target,
            hostname=hostname,
            serials=serials,
            vendor=vendor,
        )

    def node_inactive(self, target: str, hostname: str, error: str = "") -> None:
        self._stats.probed += 1
        self._stats.inactive += 1

        self.emit(
            EventType.NODE_INACTIVE,
            target=target,
            hostname=hostname,
            error=error,
        )

    def node_deviceless(self, target: str, hostname: str) -> None:
        self._stats.probed += 1
        self._stats.deviceless += 1

        self.emit(
            EventType.NODE_DEVICELESS,
            target=target,
            hostname=hostname,
        )

    def identify_started(self, source: str) -> None:
        self.emit(EventType.IDENTIFY_STARTED, source=source)

    def identify_complete(self, report: Dict[str, Any]) -> None:
        self.emit(EventType.IDENTIFY_COMPLETE, **report)

    def device_recognized(self, serial: str, target: str, hostname: str) -> None:
        self.emit(
            EventType.DEVICE_RECOGNIZED,
            serial=serial,
            target=target,
            hostname=hostname,
        )

    def record_undeployed(self, serial: str) -> None:
        self.emit(EventType.RECORD_UNDEPLOYED, serial=serial)

    def bogey_device(self, serial: str, target: str, hostname: str) -> None:
        self.emit(
            EventType.BOGEY_DEVICE,
            serial=serial,
            target=target,
            hostname=hostname,
        )

    def bogey_interface(self, serial: str, if_name: str, target: str, hostname: str) -> None:
        self.emit(
            EventType.BOGEY_INTERFACE,
            serial=serial,
            if_name=if_name,
            target=target,
            hostname=hostname,
        )

    def log(
        self,
        message: str,
        level: LogLevel = LogLevel.INFO,
        target: str = "",
    ) -> None:
        """Emit free-form message."""
        self.emit(
            EventType.LOG_MESSAGE,
            message=message,
            level=level.value,
            target=target,
        )


# =========================================================================
# Console Event Printer (for CLI)
# =========================================================================

class ConsoleEventPrinter:
    """
    Prints events to the console.

    Usage:
        printer = ConsoleEventPrinter(verbose=True, color=True)
        emitter.subscribe(printer.handle_event)
    """

    # ANSI color codes
    COLORS = {
        "reset": "\033[0m",
        "bold": "\033[1m",
        "dim": "\033[2m",
        "red": "\033[31m",
        "green": "\033[32m",
        "yellow": "\033[33m",
        "blue": "\033[34m",
        "magenta": "\033[35m",
        "cyan": "\033[36m",
    }

    def __init__(
        self,
        verbose: bool = False,
        color: bool = True,
        show_timestamps: bool = False,
    ):
        self.verbose = verbose
        self.color = color
        self.show_timestamps = show_timestamps

    def _c(self, text: str, *colors: str) -> str:
        """Wrap text in ANSI codes unless color is off."""
        if not self.color:
            return text
        codes = "".join(self.COLORS.get(c, "") for c in colors)
        return f"{codes}{text}{self.COLORS['reset']}"

    def _timestamp(self, event: SyncEvent) -> str:
        if not self.show_timestamps:
            return ""
        return f"[{event.timestamp.strftime('%H:%M:%S')}] "

    def handle_event(self, event: SyncEvent) -> None:
        """Handle and print an event."""
        handler = getattr(self, f"_handle_{event.event_type.value}", None)
        if handler:
            handler(event)
        elif self.verbose:
            print(f"{self._timestamp(event)}[{event.event_type.value}] {event.data}")

    def _handle_discovery_started(self, event: SyncEvent) -> None:
        data = event.data
        print(self._c(
            f"Probing {data['candidates']} nodes "
            f"({data['concurrency']} workers, {data['probe_timeout']:.0f}s per node)...",
            "cyan", "bold"
        ))

    def _handle_discovery_complete(self, event: SyncEvent) -> None:
        data = event.data
        print(self._c("=" * 60, "green", "bold"))
        print(f"{data['active']} active nodes "
              f"({self._c(str(data['inactive']), 'red')} inactive, "
              f"{data['deviceless']} without devices)")
        print(f"{data['devices']} devices, {data['stacks']} stacks")
        if data.get('duration_seconds') is not None:
            print(f"Duration: {data['duration_seconds']:.1f}s")
        print(self._c("=" * 60, "green", "bold"))

    def _handle_discovery_cancelled(self, event: SyncEvent) -> None:
        print(self._c("Discovery cancelled, remaining nodes skipped", "yellow", "bold"))

    def _handle_node_active(self, event: SyncEvent) -> None:
        if self.verbose:
            data = event.data
            status = self._c("OK", "green", "bold")
            print(f"{self._timestamp(event)}  {status}: {data['target']} ({data['hostname']}) "
                  f"{', '.join(data['serials'])}")

    def _handle_node_inactive(self, event: SyncEvent) -> None:
        if self.verbose:
            data = event.data
            status = self._c("INACTIVE", "red", "bold")
            print(f"{self._timestamp(event)}  {status}: {data['target']} ({data['hostname']})")

    def _handle_node_deviceless(self, event: SyncEvent) -> None:
        if self.verbose:
            data = event.data
            status = self._c("NO DEVICES", "yellow", "bold")
            print(f"{self._timestamp(event)}  {status}: {data['target']} ({data['hostname']})")

    def _handle_identify_started(self, event: SyncEvent) -> None:
        print(self._c(f"Identifying devices from {event.data['source']}...", "cyan", "bold"))

    def _handle_identify_complete(self, event: SyncEvent) -> None:
        data = event.data
        print(f"{data['recognized_devices']} recognized devices, "
              f"{len(data['undeployed'])} undeployed, "
              f"{data['conflicts']} conflicts")
        bogies = len(data['bogey_devices']) + len(data['bogey_interfaces'])
        if bogies:
            print(self._c(f"{bogies} bogies", "yellow"))

    def _handle_record_undeployed(self, event: SyncEvent) -> None:
        if self.verbose:
            print(f"{self._timestamp(event)}  {event.data['serial']} undeployed")

    def _handle_log_message(self, event: SyncEvent) -> None:
        data = event.data
        level = data.get('level', 'info')

        if level == 'debug' and not self.verbose:
            return

        level_colors = {
            'debug': 'dim',
            'info': 'reset',
            'warning': 'yellow',
            'error': 'red',
            'success': 'green',
        }
        color = level_colors.get(level, 'reset')
        target = f"[{data['target']}] " if data.get('target') else ""
        print(f"{self._timestamp(event)}  {self._c(target + data['message'], color)}")
