"""Reload orchestration.

Handles:
- Loading required units and attributing the symbols they define
- Detecting changed units on each check
- Unloading stale units and executing them again
- Rolling back partially loaded units on failure
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from types import ModuleType

from unreloader.config import ReloaderConfig
from unreloader.reload.filters import RemovalFilter, SubclassFilter, accept_all
from unreloader.reload.graph import DependencyGraph
from unreloader.reload.loader import SourceLoader, UnitLoader
from unreloader.reload.namespace import NamespaceSnapshot, SymbolPath
from unreloader.reload.tracker import LoadStack
from unreloader.reload.units import TrackedUnit, UnitState
from unreloader.reload.unloader import Unloader
from unreloader.reload.watcher import FileChange, ModificationWatcher

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "unreloader_namespace"


class ReloadStatus(Enum):
    """Status of a reload check."""

    SUCCESS = "success"
    NO_CHANGES = "no_changes"
    FAILED_LOAD = "failed_load"


@dataclass
class ReloadResult:
    """Result of a single reload check."""

    status: ReloadStatus
    changes: list[FileChange] = field(default_factory=list)
    reloaded_units: list[Path] = field(default_factory=list)
    error_message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class Reloader:
    """Tracks required units and reloads the ones that change.

    Flow of a reload check:
    1. Find units (and declared dependency files) whose mtime grew
    2. Add units that declared a dependency on a changed file
    3. For each stale unit: unload it, then execute it again
    4. Stop at the first unit that fails to load and re-raise its error
    """

    def __init__(
        self,
        config: ReloaderConfig | None = None,
        namespace: ModuleType | None = None,
        loader: UnitLoader | None = None,
        logger: logging.Logger | None = None,
        watcher: ModificationWatcher | None = None,
    ):
        self.config = config or ReloaderConfig()
        self.namespace = namespace or ModuleType(DEFAULT_NAMESPACE)
        self.loader = loader or SourceLoader(self.namespace)
        self.log = logger or logging.getLogger(__name__)
        self.watcher = watcher or ModificationWatcher()

        self.snapshot = NamespaceSnapshot(self.namespace, max_depth=self.config.max_depth)
        self.stack = LoadStack(self.snapshot)
        self.graph = DependencyGraph()
        self._units: dict[Path, TrackedUnit] = {}
        self._owners: dict[SymbolPath, Path] = {}
        self.unloader = Unloader(
            self._units, self._owners, self.graph, self.snapshot, self.loader, self.log
        )

        self.default_filter: RemovalFilter = accept_all
        if self.config.subclasses:
            self.default_filter = SubclassFilter(self.config.subclasses, self.log)

        # Serializes reload checks with requires coming from units
        self.lock = threading.RLock()
        self._cycle_loaded: set[Path] | None = None
        # Units left over by a check that stopped at a failing unit
        self._pending: list[Path] = []
        self._reload_history: list[ReloadResult] = []

    @property
    def units(self) -> list[TrackedUnit]:
        return list(self._units.values())

    def unit(self, path: Path) -> TrackedUnit | None:
        return self._units.get(path)

    def owner_of(self, symbol: SymbolPath) -> Path | None:
        return self._owners.get(symbol)

    def is_owned(self, symbol: SymbolPath) -> bool:
        return symbol in self._owners

    def features_of(self, path: Path) -> list[Path]:
        return self.graph.features_of(path)

    def require_dependencies(
        self, paths: Iterable[Path], removal_filter: RemovalFilter | None = None
    ) -> None:
        """Load each path that is not already loaded.

        Paths required while another unit is executing become features of
        that unit, whether or not they had to be loaded.
        """
        with self.lock:
            for path in paths:
                unit = self._units.get(path)
                if unit is None:
                    unit = self._units[path] = TrackedUnit(path, self.default_filter)
                if removal_filter is not None:
                    unit.removal_filter = removal_filter

                if unit.loaded:
                    if self.stack.current is not None:
                        self.stack.current.add_feature(path)
                    continue
                if self.stack.is_loading(path):
                    logger.debug(f"{path} is already being loaded, skipping")
                    continue

                self._load(unit)

    def record_dependency(self, dependency: Path, files: Iterable[Path]) -> None:
        """Reload each of ``files`` whenever ``dependency`` changes."""
        with self.lock:
            self.graph.record_dependency(dependency, files)
            if dependency not in self._units and not self.watcher.is_watched(dependency):
                self.watcher.mark(dependency)

    def _load(self, unit: TrackedUnit, reloading: bool = False) -> None:
        path = unit.path
        if not reloading:
            self.log.info(f"Loading {path}")

        # Recorded first so a unit that fails is not retried until it changes
        self.watcher.mark(path)
        unit.state = UnitState.LOADING
        frame = self.stack.begin(path)

        try:
            self.loader.load(path)
        except BaseException:
            leftovers = self.stack.fail(frame, self.is_owned)
            unit.state = UnitState.UNLOADED
            self.log.info(f"Failed to load {path}; removing partially defined constants")
            self.unloader.remove_symbols(leftovers)
            raise

        attribution = self.stack.end(frame, self.is_owned)
        unit.owned_symbols = set(attribution.symbols)
        for symbol in attribution.symbols:
            self._owners[symbol] = path
        self.graph.replace_features(path, attribution.features)
        unit.state = UnitState.LOADED

        if attribution.symbols:
            self.log.info(f"New classes in {path}: {' '.join(attribution.symbol_names)}")
        if attribution.features:
            features = " ".join(str(feature) for feature in attribution.features)
            self.log.info(f"New features in {path}: {features}")

        if self.stack.current is not None:
            self.stack.current.add_feature(path)
        if self._cycle_loaded is not None:
            self._cycle_loaded.add(path)

    def _detect_changes(self) -> list[FileChange]:
        changed = self.watcher.detect_changes(self._units)
        for dependency in self.graph.dependencies:
            if dependency not in self._units and self.watcher.has_changed(dependency):
                self.watcher.mark(dependency)
                changed.append(dependency)

        stale = self.graph.stale_set(changed)
        for path in self._pending:
            if path not in stale:
                stale.append(path)
        self._pending.clear()

        return [
            FileChange(path=path, change_type="modified" if path in changed else "dependency")
            for path in stale
            if path in self._units
        ]

    def reload(self) -> ReloadResult:
        """Unload and reload every unit that changed since the last check.

        Raises:
            Whatever the first failing unit raised. Units reloaded before it
            stay reloaded.
        """
        with self.lock:
            changes = self._detect_changes()
            if not changes:
                return ReloadResult(status=ReloadStatus.NO_CHANGES)

            reloaded: list[Path] = []
            self._cycle_loaded = set()
            try:
                for position, change in enumerate(changes):
                    if change.path in self._cycle_loaded:
                        # Already executed again as a feature of an earlier unit
                        continue
                    unit = self._units[change.path]
                    self.log.info(f"Reloading {unit.path}")
                    self.unloader.unload(unit)
                    self._load(unit, reloading=True)
                    reloaded.append(unit.path)
            except Exception as e:
                self._pending = [
                    later.path
                    for later in changes[position + 1 :]
                    if later.path not in self._cycle_loaded
                ]
                self._reload_history.append(
                    ReloadResult(
                        status=ReloadStatus.FAILED_LOAD,
                        changes=changes,
                        reloaded_units=reloaded,
                        error_message=f"{type(e).__name__}: {e}",
                    )
                )
                raise
            finally:
                self._cycle_loaded = None

            result = ReloadResult(
                status=ReloadStatus.SUCCESS,
                changes=changes,
                reloaded_units=reloaded,
            )
            self._reload_history.append(result)
            return result

    def clear(self) -> None:
        """Unload every unit and forget all tracked state."""
        with self.lock:
            for unit in reversed(self.units):
                if unit.loaded:
                    self.unloader.unload(unit)
            self._units.clear()
            self._owners.clear()
            self.graph.clear()
            self.watcher.clear()
            self._pending.clear()
            self._reload_history.clear()

    def get_reload_history(self, limit: int = 10) -> list[ReloadResult]:
        """Get recent reload results.

        Args:
            limit: Maximum number of results to return.

        Returns:
            List of recent ReloadResults, oldest first.
        """
        return self._reload_history[-limit:]
