"""Bookkeeping records for required units."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from unreloader.reload.filters import RemovalFilter, accept_all
from unreloader.reload.namespace import SymbolPath


class UnitState(str, Enum):
    """Lifecycle of a tracked unit."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    UNLOADING = "unloading"


@dataclass
class TrackedUnit:
    """A required unit and the symbols it currently owns.

    The record outlives unloads so the unit keeps its removal filter and is
    still checked for changes after a failed load.
    """

    path: Path
    removal_filter: RemovalFilter = accept_all
    owned_symbols: set[SymbolPath] = field(default_factory=set)
    state: UnitState = UnitState.UNLOADED

    @property
    def loaded(self) -> bool:
        return self.state == UnitState.LOADED

    @property
    def symbol_names(self) -> list[str]:
        return sorted(symbol.name for symbol in self.owned_symbols)
