"""Removal filters deciding which owned symbols an unload deletes.

A symbol the filter rejects stays defined across reloads and is no longer
tracked as owned by any unit, so its state survives re-execution.
"""

import logging
from collections.abc import Callable, Iterable

from unreloader.reload.namespace import (
    InvalidConstantNameError,
    SymbolKind,
    SymbolPath,
    parse_symbol_name,
)

logger = logging.getLogger(__name__)

RemovalFilter = Callable[[SymbolPath], bool]


def accept_all(symbol: SymbolPath) -> bool:
    """Default filter: every owned symbol is removed on unload."""
    return True


class SubclassFilter:
    """Only removes subclasses of the configured classes.

    Modules have no superclasses, so a module is removed only when its full
    name matches one of the configured names exactly.
    """

    def __init__(self, names: Iterable[str], log: logging.Logger | None = None):
        self.log = log or logger
        self.names: list[str] = []

        for name in names:
            try:
                parse_symbol_name(name)
            except InvalidConstantNameError as e:
                self.log.warning(str(e))
                continue
            self.names.append(name)

    def __call__(self, symbol: SymbolPath) -> bool:
        if symbol.kind == SymbolKind.MODULE:
            return symbol.name in self.names
        return any(name in symbol.ancestors for name in self.names)

    def __repr__(self) -> str:
        return f"SubclassFilter({self.names!r})"
