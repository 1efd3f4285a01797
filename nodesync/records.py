"""
NodeSync - Authoritative Records.

A record is a mapping of field name to value, one per interface the
inventory knows about. Sources read CSV files or an SQLite table and
keep only the fields the schema names.
"""

import csv
import logging
import re
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from .config import ConfigurationError, SyncSettings

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


@dataclass
class RecordSchema:
    """Which record fields identify the device and interface, and which are copied."""
    device_field: str
    interface_field: str
    info_fields: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: SyncSettings) -> 'RecordSchema':
        return cls(
            device_field=settings.device_field,
            interface_field=settings.interface_field,
            info_fields=list(settings.info_fields),
        )

    @property
    def fields(self) -> List[str]:
        """All fields kept from a source row, key fields first."""
        fields = [self.device_field, self.interface_field]
        for name in self.info_fields:
            if name not in fields:
                fields.append(name)
        return fields

    def check_columns(self, columns: Sequence[str], source: str) -> None:
        """
        Raise ConfigurationError when a source lacks a schema field.

        The check runs before any record is read.
        """
        missing = [name for name in self.fields if name not in columns]
        if missing:
            raise ConfigurationError(
                f"incompatible database {source}: missing {', '.join(missing)}"
            )

    def project(self, row: Mapping[str, Any]) -> Record:
        """Keep only schema fields."""
        return {name: row.get(name) for name in self.fields}

    def is_valid(self, record: Mapping[str, Any]) -> bool:
        """Device and interface fields must be present and non-blank."""
        for name in (self.device_field, self.interface_field):
            value = record.get(name)
            if value is None or not str(value).strip():
                return False
        return True

    def info(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """The info field values of a record."""
        return {name: record.get(name) for name in self.info_fields}


class CSVRecordSource:
    """RFC4180 file with a header row."""

    def __init__(self, path: Union[str, Path], schema: RecordSchema):
        self.path = Path(path)
        self.schema = schema

    def __str__(self) -> str:
        return str(self.path)

    def check(self) -> None:
        """Read only the header and verify it against the schema."""
        for _ in self._rows(header_only=True):
            pass

    def __iter__(self) -> Iterator[Record]:
        return self._rows()

    def _rows(self, header_only: bool = False) -> Iterator[Record]:
        try:
            handle = open(self.path, newline='', encoding='utf-8')
        except OSError as e:
            raise ConfigurationError(f"cannot read {self.path}: {e}") from e

        with handle:
            reader = csv.DictReader(handle)
            columns = [c.strip() for c in (reader.fieldnames or [])]
            reader.fieldnames = columns
            self.schema.check_columns(columns, str(self.path))
            if header_only:
                return

            for row in reader:
                yield self.schema.project(row)


class SQLiteRecordSource:
    """Table in an SQLite database."""

    def __init__(self, path: Union[str, Path], table: str, schema: RecordSchema):
        if not IDENTIFIER_PATTERN.match(table or ''):
            raise ConfigurationError(f"invalid table name {table!r}")
        self.path = Path(path)
        self.table = table
        self.schema = schema

    def __str__(self) -> str:
        return f"{self.path}:{self.table}"

    def check(self) -> None:
        """Query the table once and verify its columns against the schema."""
        for _ in self._rows(header_only=True):
            pass

    def __iter__(self) -> Iterator[Record]:
        return self._rows()

    def _rows(self, header_only: bool = False) -> Iterator[Record]:
        if not self.path.exists():
            raise ConfigurationError(f"database {self.path} does not exist")

        conn = sqlite3.connect(str(self.path))
        try:
            conn.row_factory = sqlite3.Row
            try:
                cursor = conn.execute(f'SELECT * FROM "{self.table}"')
            except sqlite3.Error as e:
                raise ConfigurationError(f"cannot query {self}: {e}") from e

            columns = [d[0] for d in cursor.description]
            self.schema.check_columns(columns, str(self))
            if header_only:
                return

            for row in cursor:
                yield self.schema.project(dict(row))
        finally:
            conn.close()


def open_record_source(
    settings: SyncSettings,
    csv_path: Optional[str] = None,
    db_path: Optional[str] = None,
):
    """CSV source when a file is given, otherwise the configured SQLite table."""
    schema = RecordSchema.from_settings(settings)
    if csv_path:
        return CSVRecordSource(csv_path, schema)
    if not db_path:
        raise ConfigurationError("no record source: pass a CSV file or set db.path")
    return SQLiteRecordSource(db_path, settings.table, schema)
