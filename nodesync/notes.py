"""
NodeSync - Note Logs.

Append-only text logs addressed by logical name (node, device, bogey,
update) plus the two cache files. Parent directories are created on
first write.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class NoteLog:
    """
    Writes notes to the file registered for a logical log name.

    Names without a registered file are dropped with a debug message,
    so a run configured without some log still completes.

    Usage:
        notes = NoteLog({'node': 'var/log/nodes.log'})
        notes.note('node', '10.0.0.1 (sw1) inactive')
        notes.rewrite('node_cache', zone_lines)
    """

    TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

    def __init__(self, paths: Optional[Dict[str, PathLike]] = None):
        self.paths: Dict[str, Path] = {
            name: Path(path) for name, path in (paths or {}).items() if path
        }

    def path(self, log: str) -> Optional[Path]:
        return self.paths.get(log)

    def _open(self, log: str, mode: str):
        path = self.paths.get(log)
        if path is None:
            logger.debug(f"no file registered for note log {log!r}")
            return None
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, mode, encoding='utf-8', newline='')

    def note(self, log: str, message: str, stamp: bool = True, truncate: bool = False) -> None:
        """
        Write one line to a log.

        Args:
            log: Logical log name
            message: Line text, without newline
            stamp: Prefix the line with the current time
            truncate: Replace the file contents instead of appending
        """
        handle = self._open(log, 'w' if truncate else 'a')
        if handle is None:
            return

        if stamp:
            message = f"{datetime.now().strftime(self.TIMESTAMP_FORMAT)} {message}"

        with handle:
            handle.write(message + '\n')

    def rewrite(self, log: str, lines: Iterable[str]) -> None:
        """Replace a log (usually a cache) with the given lines, unstamped."""
        handle = self._open(log, 'w')
        if handle is None:
            return

        with handle:
            for line in lines:
                handle.write(line + '\n')
