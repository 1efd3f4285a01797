"""
NodeSync - Discovery Engine.

Probes candidate nodes concurrently and builds the EntityGraph.

Features:
- Bounded concurrency (asyncio.Semaphore)
- Per-probe timeout; a probe that times out or raises counts as inactive
- Graph insertion and note logging happen in candidate order after the
  probes finish, so the first node listed wins a contested serial
- Cancellation via asyncio.Event; probes not yet started are skipped

Usage:
    client = SNMPClient(settings.snmp)
    engine = DiscoveryEngine(client.connect, notes=notes, max_concurrent=20)

    engine.events.subscribe(ConsoleEventPrinter().handle_event)

    graph, result = await engine.discover(read_node_list("nodes.txt"))
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from .events import EventEmitter, LogLevel
from .graph import EntityGraph, describe_node, initialize_node
from .models import Candidate, DiscoveryResult, Node, NodeInfo
from .notes import NoteLog
from .snmp.walker import TableWalker

logger = logging.getLogger(__name__)

# connect(address) -> (session, info) | None
ConnectFn = Callable[[str], Awaitable[Optional[Tuple[Any, NodeInfo]]]]

# Probe outcomes
ACTIVE = "active"
INACTIVE = "inactive"
DEVICELESS = "deviceless"
CANCELLED = "cancelled"

ProbeOutcome = Tuple[str, Node, str]


class DiscoveryEngine:
    """
    Concurrent discovery over a list of candidates.

    Attributes:
        connect: SNMP capability returning (session, info) or None
        notes: Note log sink for the node log
        walker: Table walker shared by every probe
        max_concurrent: Maximum probes in flight
        probe_timeout: Seconds allowed for one node (connect + topology)
        events: EventEmitter for progress reporting
    """

    def __init__(
        self,
        connect: ConnectFn,
        notes: Optional[NoteLog] = None,
        walker: Optional[TableWalker] = None,
        max_concurrent: int = 20,
        probe_timeout: float = 30.0,
        event_emitter: Optional[EventEmitter] = None,
        verbose: bool = False,
        indent: int = 4,
    ):
        self.connect = connect
        self.notes = notes or NoteLog()
        self.walker = walker or TableWalker()
        self.max_concurrent = max_concurrent
        self.probe_timeout = probe_timeout
        self.events = event_emitter or EventEmitter()
        self.verbose = verbose
        self.indent = indent

        self._semaphore: Optional[asyncio.Semaphore] = None

    # =========================================================================
    # Probing
    # =========================================================================

    async def probe(self, candidate: Candidate) -> ProbeOutcome:
        """
        Connect to one candidate and resolve its devices.

        Returns:
            (outcome, node, error) where outcome is ACTIVE, INACTIVE or
            DEVICELESS
        """
        node = Node(ip=candidate.ip, hostname=candidate.hostname, record=candidate.record)

        connected = await self.connect(candidate.ip)
        if connected is None:
            return INACTIVE, node, "no SNMP response"

        node.session, node.info = connected

        serials = await initialize_node(node, self.walker)
        if not serials:
            return DEVICELESS, node, ""

        return ACTIVE, node, ""

    async def _probe_with_semaphore(
        self,
        candidate: Candidate,
        cancel_event: Optional[asyncio.Event],
    ) -> ProbeOutcome:
        """
        Rate-limited probe with timeout.

        Timeouts and exceptions are turned into INACTIVE outcomes here so
        one node cannot stop the others.
        """
        async with self._semaphore:
            if cancel_event and cancel_event.is_set():
                return CANCELLED, Node(ip=candidate.ip, hostname=candidate.hostname), ""

            try:
                return await asyncio.wait_for(self.probe(candidate), timeout=self.probe_timeout)

            except asyncio.TimeoutError:
                logger.warning(f"{candidate.ip} ({candidate.hostname}): probe timed out "
                               f"after {self.probe_timeout:.0f}s")
                error = "probe timeout"

            except Exception as e:
                logger.warning(f"{candidate.ip} ({candidate.hostname}): probe failed: "
                               f"{type(e).__name__}: {e}")
                error = f"{type(e).__name__}: {e}"

            node = Node(ip=candidate.ip, hostname=candidate.hostname, record=candidate.record)
            return INACTIVE, node, error

    # =========================================================================
    # Discovery
    # =========================================================================

    async def discover(
        self,
        candidates: List[Candidate],
        graph: Optional[EntityGraph] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Tuple[EntityGraph, DiscoveryResult]:
        """
        Probe every candidate and populate the graph.

        Args:
            candidates: Nodes to probe (addresses are expected unique)
            graph: Graph to add to (a new one is created if not provided)
            cancel_event: Set to stop starting new probes

        Returns:
            (graph, result statistics)
        """
        graph = graph if graph is not None else EntityGraph()
        result = DiscoveryResult(started_at=datetime.now())
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

        self.events.discovery_started(len(candidates), self.max_concurrent, self.probe_timeout)

        tasks = [self._probe_with_semaphore(c, cancel_event) for c in candidates]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for candidate, outcome in zip(candidates, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                outcome = (INACTIVE, Node(ip=candidate.ip, hostname=candidate.hostname), str(outcome))

            status, node, error = outcome
            if status == CANCELLED:
                result.cancelled = True
                continue

            result.total_attempted += 1
            self._record(graph, result, status, node, error)

        result.completed_at = datetime.now()

        if result.cancelled:
            self.events.discovery_cancelled()

        self.events.discovery_complete(result.to_dict())
        return graph, result

    def _record(
        self,
        graph: EntityGraph,
        result: DiscoveryResult,
        status: str,
        node: Node,
        error: str,
    ) -> None:
        """Insert one probed node and write its node log line."""
        if status == INACTIVE:
            result.inactive += 1
            self.notes.note('node', f"{node.label} inactive")
            self.events.node_inactive(node.ip, node.hostname, error)
            return

        serials = graph.add_node(node) if status == ACTIVE else []
        if not serials:
            result.deviceless += 1
            self.notes.note('node', f"{node.label} no devices detected")
            self.events.node_deviceless(node.ip, node.hostname)
            return

        result.active += 1
        result.devices += len(serials)
        if len(serials) > 1:
            result.stacks += 1

        self.notes.note('node', f"{node.label} {' '.join(serials)}")
        vendor = node.info.vendor.value if node.info else "unknown"
        self.events.node_active(node.ip, node.hostname, serials, vendor)

        if self.verbose:
            self.events.log(describe_node(node, self.indent), LogLevel.DEBUG, node.ip)
