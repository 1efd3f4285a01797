"""
NodeSync - Node Sources.

Candidate node addresses come from RFC1035-style zone lines, read from
a node list file, standard input, or a live zone transfer (dnspython).

A usable line carries a hostname, an A or AAAA record type and an
address:

    sw1.example.net. 3600 IN A 192.0.2.10
    sw2 IN AAAA 2001:db8::10

The hostname is the first label of the owner name.
"""

import ipaddress
import logging
import re
import sys
from typing import Iterable, List, Optional

import dns.query
import dns.rdatatype
import dns.zone

from .config import DNSSettings
from .models import Candidate

logger = logging.getLogger(__name__)

ZONE_LINE_PATTERN = re.compile(
    r'^(?P<host>[^.\s;]+)\S*\s+(?:.*\s)?(?:A|AAAA)\s+(?P<ip>[^\s;]+)'
)

# Pattern selecting every host in a zone transfer
ALL_HOSTS = 'all'


def parse_zone_line(line: str) -> Optional[Candidate]:
    """
    Parse one zone line.

    Returns:
        Candidate, or None when the line holds no A/AAAA record
    """
    line = line.strip()
    if not line or line.startswith(';'):
        return None

    match = ZONE_LINE_PATTERN.match(line)
    if not match:
        return None

    try:
        ip = str(ipaddress.ip_address(match.group('ip')))
    except ValueError:
        logger.debug(f"ignoring zone line with invalid address: {line}")
        return None

    return Candidate(ip=ip, hostname=match.group('host'), record=line)


def read_zone_lines(lines: Iterable[str]) -> List[Candidate]:
    """Parse zone lines, keeping the first line seen for each address."""
    candidates: List[Candidate] = []
    seen = set()

    for line in lines:
        candidate = parse_zone_line(line)
        if candidate is None:
            continue
        if candidate.ip in seen:
            logger.debug(f"{candidate.ip} listed more than once, probing it once")
            continue
        seen.add(candidate.ip)
        candidates.append(candidate)

    return candidates


def read_node_list(path: str) -> List[Candidate]:
    """Read candidates from a node list file, or standard input for '-'."""
    if path == '-':
        return read_zone_lines(sys.stdin.read().splitlines())

    with open(path, encoding='utf-8') as f:
        return read_zone_lines(f.read().splitlines())


def host_pattern(pattern: str) -> re.Pattern:
    """
    Compile a -D host pattern. The pattern must match the leading label(s)
    of the owner name up to a dot; 'all' selects every host.
    """
    if pattern == ALL_HOSTS:
        pattern = r'[^.]+'
    return re.compile(rf'^({pattern})\.')


def zone_transfer(settings: DNSSettings, pattern: str) -> List[str]:
    """
    Transfer the configured zone and return matching records as zone lines.

    Args:
        settings: DNS section with nameserver and domain
        pattern: Host pattern (see host_pattern)

    Returns:
        Lines "fqdn ttl IN TYPE address" for A/AAAA records whose owner
        name matches the pattern

    Raises:
        dns.exception.DNSException or OSError when the transfer fails
    """
    matcher = host_pattern(pattern)
    wanted = {dns.rdatatype.from_text(t) for t in settings.record_types}

    logger.info(f"zone transfer of {settings.domain} from {settings.nameserver}:{settings.port}")
    zone = dns.zone.from_xfr(
        dns.query.xfr(
            settings.nameserver,
            settings.domain,
            port=settings.port,
            lifetime=settings.timeout,
        )
    )

    lines: List[str] = []
    for name, ttl, rdata in zone.iterate_rdatas():
        if rdata.rdtype not in wanted:
            continue

        owner = name.derelativize(zone.origin).to_text()
        if not matcher.match(owner):
            continue

        rdtype = dns.rdatatype.to_text(rdata.rdtype)
        lines.append(f"{owner} {ttl} IN {rdtype} {rdata.address}")

    logger.debug(f"zone transfer returned {len(lines)} matching records")
    return lines
