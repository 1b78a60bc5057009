"""Modification-time tracking for required units and dependency files."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class FileChange:
    """A unit that has to be reloaded, and why."""

    path: Path
    change_type: str  # "modified" or "dependency"
    detected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ModificationWatcher:
    """Remembers the last seen modification time of each watched path.

    A path counts as changed when its current mtime is newer than the
    recorded one. Paths that no longer exist are never reported.
    """

    def __init__(self) -> None:
        self._last_mtimes: dict[Path, float | None] = {}

    def modified_at(self, path: Path) -> float | None:
        """Return the current mtime of ``path``, or None if it is missing."""
        try:
            return path.stat().st_mtime
        except OSError as e:
            logger.debug(f"Cannot stat {path}: {e}")
            return None

    def is_watched(self, path: Path) -> bool:
        return path in self._last_mtimes

    def mark(self, path: Path) -> None:
        """Record the current mtime of ``path`` as seen."""
        self._last_mtimes[path] = self.modified_at(path)

    def has_changed(self, path: Path) -> bool:
        mtime = self.modified_at(path)
        if mtime is None:
            return False
        last = self._last_mtimes.get(path)
        return last is None or mtime > last

    def detect_changes(self, paths: Iterable[Path]) -> list[Path]:
        """Return the paths whose mtime grew since they were last marked."""
        return [path for path in paths if self.has_changed(path)]

    def clear(self) -> None:
        self._last_mtimes.clear()
