"""
NodeSync - Configuration.

Settings are read from a single YAML file with yaml.safe_load and
mapped onto dataclasses, one per section:

    nodesync:
      table: inventory
      device_field: serial
      interface_field: ifname
      info_fields: [location, owner]
    snmp:
      version: 2c
      community: public
    dns:
      nameserver: 192.0.2.53
      domain: example.net
    db:
      path: var/inventory.db
    discovery:
      concurrency: 20
      probe_timeout: 30

Missing sections fall back to defaults. Structural problems raise
ConfigurationError before any probing starts.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml


class ConfigurationError(ValueError):
    """Raised when settings cannot satisfy the requested run."""


SNMP_VERSIONS = ('1', '2c', '3')
SECURITY_LEVELS = ('noAuthNoPriv', 'authNoPriv', 'authPriv')


@dataclass
class SyncSettings:
    """Record layout and output locations."""
    table: Optional[str] = None
    device_field: Optional[str] = None
    interface_field: Optional[str] = None
    info_fields: List[str] = field(default_factory=list)
    indent: int = 4
    node_log: str = 'var/log/nodes.log'
    device_log: str = 'var/log/devices.log'
    bogey_log: str = 'var/log/bogies.log'
    update_log: str = 'var/log/updates.log'
    node_cache: str = 'var/dns.txt'
    record_cache: str = 'var/db.csv'

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyncSettings':
        info_fields = data.get('info_fields') or []
        if isinstance(info_fields, str):
            info_fields = [f.strip() for f in info_fields.split(',') if f.strip()]

        defaults = cls()
        return cls(
            table=data.get('table'),
            device_field=data.get('device_field'),
            interface_field=data.get('interface_field'),
            info_fields=list(info_fields),
            indent=int(data.get('indent', defaults.indent)),
            node_log=data.get('node_log', defaults.node_log),
            device_log=data.get('device_log', defaults.device_log),
            bogey_log=data.get('bogey_log', defaults.bogey_log),
            update_log=data.get('update_log', defaults.update_log),
            node_cache=data.get('node_cache', defaults.node_cache),
            record_cache=data.get('record_cache', defaults.record_cache),
        )

    @property
    def log_paths(self) -> Dict[str, str]:
        """Logical note log name -> file path."""
        return {
            'node': self.node_log,
            'device': self.device_log,
            'bogey': self.bogey_log,
            'update': self.update_log,
        }


@dataclass
class SNMPSettings:
    """SNMP agent access. v3 fields are ignored for v1/v2c."""
    version: str = '2c'
    community: str = 'public'
    port: int = 161
    timeout: float = 2.0
    retries: int = 1
    username: Optional[str] = None
    security_level: str = 'noAuthNoPriv'
    auth_protocol: str = 'MD5'
    auth_password: Optional[str] = None
    priv_protocol: str = 'DES'
    priv_password: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SNMPSettings':
        defaults = cls()
        return cls(
            version=str(data.get('version', defaults.version)),
            community=str(data.get('community', defaults.community)),
            port=int(data.get('port', defaults.port)),
            timeout=float(data.get('timeout', defaults.timeout)),
            retries=int(data.get('retries', defaults.retries)),
            username=data.get('username'),
            security_level=data.get('security_level', defaults.security_level),
            auth_protocol=data.get('auth_protocol', defaults.auth_protocol),
            auth_password=data.get('auth_password'),
            priv_protocol=data.get('priv_protocol', defaults.priv_protocol),
            priv_password=data.get('priv_password'),
        )


@dataclass
class DNSSettings:
    """Zone transfer source."""
    nameserver: Optional[str] = None
    domain: Optional[str] = None
    port: int = 53
    timeout: float = 10.0
    record_types: List[str] = field(default_factory=lambda: ['A', 'AAAA'])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DNSSettings':
        defaults = cls()
        return cls(
            nameserver=data.get('nameserver'),
            domain=data.get('domain'),
            port=int(data.get('port', defaults.port)),
            timeout=float(data.get('timeout', defaults.timeout)),
            record_types=[t.upper() for t in data.get('record_types', defaults.record_types)],
        )


@dataclass
class DatabaseSettings:
    path: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DatabaseSettings':
        return cls(path=data.get('path'))


@dataclass
class DiscoverySettings:
    concurrency: int = 20
    probe_timeout: float = 30.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiscoverySettings':
        defaults = cls()
        return cls(
            concurrency=int(data.get('concurrency', defaults.concurrency)),
            probe_timeout=float(data.get('probe_timeout', defaults.probe_timeout)),
        )


@dataclass
class Settings:
    """All configuration sections."""
    sync: SyncSettings = field(default_factory=SyncSettings)
    snmp: SNMPSettings = field(default_factory=SNMPSettings)
    dns: DNSSettings = field(default_factory=DNSSettings)
    db: DatabaseSettings = field(default_factory=DatabaseSettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Settings':
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigurationError("configuration must be a mapping of sections")

        try:
            return cls(
                sync=SyncSettings.from_dict(data.get('nodesync') or {}),
                snmp=SNMPSettings.from_dict(data.get('snmp') or {}),
                dns=DNSSettings.from_dict(data.get('dns') or {}),
                db=DatabaseSettings.from_dict(data.get('db') or {}),
                discovery=DiscoverySettings.from_dict(data.get('discovery') or {}),
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"invalid configuration value: {e}") from e

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'Settings':
        """Create Settings from YAML file."""
        try:
            with open(yaml_path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"cannot read {yaml_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"cannot parse {yaml_path}: {e}") from e

        return cls.from_dict(data)

    def validate(self, dns: bool = False, database: bool = False) -> None:
        """
        Check the settings against the run about to start.

        Args:
            dns: Nodes come from a zone transfer
            database: Records come from the SQLite table

        Raises:
            ConfigurationError: On the first problem found
        """
        sync = self.sync
        for name in ('table', 'device_field', 'interface_field'):
            if not getattr(sync, name):
                raise ConfigurationError(f"nodesync.{name} is not set")
        if not sync.info_fields:
            raise ConfigurationError("nodesync.info_fields is not set")

        snmp = self.snmp
        if snmp.version not in SNMP_VERSIONS:
            raise ConfigurationError(f"unsupported SNMP version {snmp.version!r}")

        if snmp.version == '3':
            if not snmp.username:
                raise ConfigurationError("SNMPv3 requires snmp.username")
            if snmp.security_level not in SECURITY_LEVELS:
                raise ConfigurationError(f"unknown SNMPv3 security level {snmp.security_level!r}")
            if snmp.security_level in ('authNoPriv', 'authPriv') and not snmp.auth_password:
                raise ConfigurationError(f"SNMPv3 {snmp.security_level} requires snmp.auth_password")
            if snmp.security_level == 'authPriv' and not snmp.priv_password:
                raise ConfigurationError("SNMPv3 authPriv requires snmp.priv_password")

        if dns and not (self.dns.nameserver and self.dns.domain):
            raise ConfigurationError("zone transfer requires dns.nameserver and dns.domain")

        if database and not self.db.path:
            raise ConfigurationError("database records require db.path")
