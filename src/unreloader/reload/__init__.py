"""Unit tracking and reloading.

- Namespace snapshots to find what a unit defined
- Load stack attributing new symbols to the unit that created them
- Dependency graph of required features and declared dependencies
- Unloading with removal filters and rollback of failed loads
"""

from unreloader.reload.filters import SubclassFilter, accept_all
from unreloader.reload.loader import SourceLoader, UnitLoader
from unreloader.reload.namespace import (
    ConstantRemovalError,
    InvalidConstantNameError,
    SymbolKind,
    SymbolPath,
    UnreloaderError,
)
from unreloader.reload.reloader import Reloader, ReloadResult, ReloadStatus
from unreloader.reload.units import TrackedUnit, UnitState

__all__ = [
    "ConstantRemovalError",
    "InvalidConstantNameError",
    "Reloader",
    "ReloadResult",
    "ReloadStatus",
    "SourceLoader",
    "SubclassFilter",
    "SymbolKind",
    "SymbolPath",
    "TrackedUnit",
    "UnitLoader",
    "UnitState",
    "UnreloaderError",
    "accept_all",
]
