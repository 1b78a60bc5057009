"""Tearing down a unit and everything it pulled in."""

import logging
from collections.abc import Iterable
from pathlib import Path

from unreloader.reload.graph import DependencyGraph
from unreloader.reload.loader import UnitLoader
from unreloader.reload.namespace import ConstantRemovalError, NamespaceSnapshot, SymbolPath
from unreloader.reload.units import TrackedUnit, UnitState

logger = logging.getLogger(__name__)


def removal_order(symbols: Iterable[SymbolPath]) -> list[SymbolPath]:
    """Nested symbols first, so a parent is never deleted before its children."""
    return sorted(symbols, key=lambda symbol: (-symbol.depth, symbol.name))


class Unloader:
    """Removes a unit's symbols and forgets it as a loaded feature."""

    def __init__(
        self,
        units: dict[Path, TrackedUnit],
        owners: dict[SymbolPath, Path],
        graph: DependencyGraph,
        snapshot: NamespaceSnapshot,
        loader: UnitLoader,
        log: logging.Logger | None = None,
    ):
        self.units = units
        self.owners = owners
        self.graph = graph
        self.snapshot = snapshot
        self.loader = loader
        self.log = log or logger

    def remove_symbol(self, symbol: SymbolPath) -> bool:
        """Delete one symbol from the namespace.

        Failures are logged and reported through the return value only.
        """
        try:
            self.snapshot.remove(symbol)
        except ConstantRemovalError as e:
            self.log.warning(str(e))
            return False
        self.log.info(f"Removed constant {symbol.name}")
        return True

    def remove_symbols(self, symbols: Iterable[SymbolPath]) -> list[SymbolPath]:
        return [symbol for symbol in removal_order(symbols) if self.remove_symbol(symbol)]

    def unload(self, unit: TrackedUnit, _visited: set[Path] | None = None) -> None:
        visited = _visited if _visited is not None else set()
        if unit.path in visited:
            return
        visited.add(unit.path)

        was_loaded = unit.loaded
        unit.state = UnitState.UNLOADING

        for child_path in self.graph.features_of(unit.path):
            child = self.units.get(child_path)
            if child is not None and child.loaded:
                self.unload(child, visited)

        for symbol in removal_order(unit.owned_symbols):
            self.owners.pop(symbol, None)
            if unit.removal_filter(symbol):
                self.remove_symbol(symbol)
            else:
                logger.debug(f"Keeping {symbol.name} defined, no longer tracked")
        unit.owned_symbols.clear()

        self.graph.clear_features(unit.path)
        self.loader.unload(unit.path)
        unit.state = UnitState.UNLOADED

        if was_loaded:
            self.log.info(f"Removed feature {unit.path}")
