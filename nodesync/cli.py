#!/usr/bin/env python3
"""
NodeSync - Command Line Interface.

Discovers the devices listed in a node list (or a DNS zone), identifies
them against the inventory records, and hands the result to the
updater.

Usage:
    # Full run, node list from a file, records from the configured SQLite table
    nodesync -c etc/nodesync.yaml nodes.txt

    # Discovery only: probe, log, and write the active node cache
    nodesync -p 1 nodes.txt

    # Discovery + identification from a CSV file
    nodesync -p 2 -d inventory.csv nodes.txt

    # Nodes from a zone transfer, every host whose name starts with "sw"
    nodesync -D 'sw[^.]*' -d inventory.csv

    # Node list on standard input
    cat var/dns.txt | nodesync -d var/db.csv -
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import dns.exception

from . import __version__
from .config import ConfigurationError, Settings
from .decisions import ConsoleDecisions
from .engine import DiscoveryEngine
from .events import ConsoleEventPrinter, EventEmitter
from .export import write_node_cache, write_record_cache, write_updates
from .notes import NoteLog
from .reconcile import Reconciler
from .records import open_record_source
from .snmp.client import SNMPClient
from .sources import read_node_list, read_zone_lines, zone_transfer

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = 'etc/nodesync.yaml'

PROBE_FULL = 0
PROBE_DISCOVERY = 1
PROBE_IDENTIFY = 2


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog='nodesync',
        description='Discover network devices and synchronize them with an inventory',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Probe levels (each includes the previous ones):
  1  Probe the network for active nodes.
  2  Probe the database for those nodes.
  0  Also update the inventory (default).
        """
    )

    parser.add_argument(
        'nodes',
        nargs='?',
        default='-',
        help="RFC1035-style node list (default: '-' for standard input)"
    )
    parser.add_argument(
        '-c', '--config',
        default=DEFAULT_CONFIG,
        help=f'YAML configuration file (default: {DEFAULT_CONFIG})'
    )
    parser.add_argument(
        '-p', '--probe',
        type=int,
        choices=[PROBE_FULL, PROBE_DISCOVERY, PROBE_IDENTIFY],
        default=PROBE_FULL,
        dest='probe_level',
        help='Probe level (default: 0)'
    )
    parser.add_argument(
        '-D', '--dns',
        metavar='PATTERN',
        help="Use a DNS zone transfer for hosts matching PATTERN ('all' for every host)"
    )
    parser.add_argument(
        '-d', '--database',
        metavar='CSV',
        dest='csv',
        help='RFC4180 record file to use instead of the configured database'
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Print nothing and never ask'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print everything'
    )
    parser.add_argument(
        '-V', '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    parser.add_argument(
        '--no-color',
        action='store_true',
        dest='no_color',
        help='Disable colored output'
    )
    parser.add_argument(
        '--timestamps',
        action='store_true',
        help='Show timestamps on events'
    )

    return parser


def setup_logging(verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


async def run(args, settings: Settings, emitter: EventEmitter) -> int:
    """Run discovery, identification and update up to the requested probe level."""
    sync = settings.sync
    identify = args.probe_level != PROBE_DISCOVERY

    settings.validate(dns=bool(args.dns), database=identify and not args.csv)

    notes = NoteLog({
        **sync.log_paths,
        'node_cache': sync.node_cache,
        'record_cache': sync.record_cache,
    })

    # Schema problems abort before anything is probed
    source = None
    if identify:
        source = open_record_source(sync, csv_path=args.csv, db_path=settings.db.path)
        source.check()

    if args.dns:
        candidates = read_zone_lines(zone_transfer(settings.dns, args.dns))
    else:
        candidates = read_node_list(args.nodes)

    client = SNMPClient(settings.snmp)
    engine = DiscoveryEngine(
        client.connect,
        notes=notes,
        max_concurrent=settings.discovery.concurrency,
        probe_timeout=settings.discovery.probe_timeout,
        event_emitter=emitter,
        verbose=args.verbose,
        indent=sync.indent,
    )

    graph, result = await engine.discover(candidates)
    stats = emitter.stats
    logger.info(f"probed {stats.probed} of {stats.candidates} nodes: {stats.active} active, "
                f"{stats.devices} devices, {stats.stacks} stacks")

    if args.probe_level in (PROBE_DISCOVERY, PROBE_IDENTIFY):
        write_node_cache(graph, notes)
    if not identify:
        return 0

    reconciler = Reconciler(
        graph,
        source.schema,
        decisions=None if args.quiet else ConsoleDecisions(),
        notes=notes,
        event_emitter=emitter,
        quiet=args.quiet,
        verbose=args.verbose,
        indent=sync.indent,
    )
    reconciler.reconcile(source, str(source))

    if args.probe_level == PROBE_IDENTIFY:
        write_record_cache(graph, source.schema, sync.record_cache)
        return 0

    written = write_updates(graph, source.schema, notes)
    logger.info(f"handed {written} interfaces to the updater")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # -q and -v cancel each other out
    if args.quiet and args.verbose:
        args.quiet = args.verbose = False

    setup_logging(args.verbose, args.quiet)

    emitter = EventEmitter()
    if not args.quiet:
        printer = ConsoleEventPrinter(
            verbose=args.verbose,
            color=not args.no_color,
            show_timestamps=args.timestamps,
        )
        emitter.subscribe(printer.handle_event)

    try:
        if not args.quiet:
            print(f"configuring (using {args.config})...")
        settings = Settings.from_yaml(args.config)
        return asyncio.run(run(args, settings, emitter))

    except ConfigurationError as e:
        print(f"ERROR: {e}")
        return 1

    except dns.exception.DNSException as e:
        print(f"ERROR: Zone transfer failed: {e}")
        return 1

    except OSError as e:
        print(f"ERROR: {e}")
        return 1

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
