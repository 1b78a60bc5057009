"""Snapshots of the shared definition namespace.

Units are executed into a single namespace module. The classes and modules
they define there (and the ones nested inside those) are the symbols the
reloader attributes to units and removes again on unload.
"""

import keyword
import logging
import sys
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from types import ModuleType

logger = logging.getLogger(__name__)


class UnreloaderError(Exception):
    """Base class for reloader errors."""


class InvalidConstantNameError(UnreloaderError):
    """Raised when a name is not a valid dotted symbol path."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'"{name}" is not a valid constant name!')


class SymbolKind(str, Enum):
    """What kind of definition a symbol refers to."""

    CLASS = "class"
    MODULE = "module"


@dataclass(frozen=True)
class SymbolPath:
    """Position of a definition in the namespace.

    Identity is the attribute path only; ``kind`` and ``ancestors`` describe
    the object found there when the snapshot was taken.
    """

    names: tuple[str, ...]
    kind: SymbolKind = field(default=SymbolKind.CLASS, compare=False)
    ancestors: tuple[str, ...] = field(default=(), compare=False)

    @property
    def name(self) -> str:
        return ".".join(self.names)

    @property
    def depth(self) -> int:
        return len(self.names)

    def __str__(self) -> str:
        return self.name


class ConstantRemovalError(UnreloaderError):
    """Raised when a symbol cannot be deleted from the namespace."""

    def __init__(self, symbol: SymbolPath, reason: str):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Cannot remove constant {symbol.name}: {reason}")


def parse_symbol_name(name: str) -> tuple[str, ...]:
    """Split a dotted name into path components.

    Raises:
        InvalidConstantNameError: If any component is not an identifier.
    """
    parts = tuple(name.split("."))
    for part in parts:
        if not part.isidentifier() or keyword.iskeyword(part):
            raise InvalidConstantNameError(name)
    return parts


def _ancestor_name(cls: type, namespace_name: str) -> str:
    if cls.__module__ in (namespace_name, "builtins"):
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


class NamespaceSnapshot:
    """Walks a namespace module and reports the symbols defined in it.

    Only classes created by code executed in the namespace and ad hoc module
    objects are walked. Anything imported from the host (stdlib, installed
    packages) is skipped, so the cost follows the size of the application
    rather than the runtime.
    """

    def __init__(self, namespace: ModuleType, max_depth: int = 8):
        self.namespace = namespace
        self.max_depth = max_depth

    def _symbol_for(self, names: tuple[str, ...], value: object) -> SymbolPath | None:
        if isinstance(value, type):
            if value.__module__ != self.namespace.__name__ or value.__name__ != names[-1]:
                return None
            ancestors = tuple(
                _ancestor_name(base, self.namespace.__name__) for base in value.__mro__[1:]
            )
            return SymbolPath(names, SymbolKind.CLASS, ancestors)

        if isinstance(value, ModuleType):
            if value is self.namespace or value.__name__ != ".".join(names):
                return None
            if sys.modules.get(value.__name__) is value:
                # A host module imported under its own name
                return None
            return SymbolPath(names, SymbolKind.MODULE)

        return None

    def take(self) -> frozenset[SymbolPath]:
        """Return the symbols currently reachable from the namespace."""
        symbols: set[SymbolPath] = set()
        visited: set[int] = set()
        queue: deque[tuple[tuple[str, ...], object]] = deque([((), self.namespace)])

        while queue:
            prefix, container = queue.popleft()
            if len(prefix) >= self.max_depth:
                continue

            for name, value in list(vars(container).items()):
                if name.startswith("__"):
                    continue
                names = (*prefix, name)
                symbol = self._symbol_for(names, value)
                if symbol is None or id(value) in visited:
                    continue
                visited.add(id(value))
                symbols.add(symbol)
                queue.append((names, value))

        return frozenset(symbols)

    def resolve(self, names: tuple[str, ...]) -> object | None:
        """Return the object at ``names`` or None if any step is missing."""
        obj: object = self.namespace
        for name in names:
            try:
                obj = vars(obj)[name]
            except (KeyError, TypeError):
                return None
        return obj

    def remove(self, symbol: SymbolPath) -> None:
        """Delete ``symbol`` from its parent.

        Raises:
            ConstantRemovalError: If the symbol is already gone or the
                parent refuses the deletion.
        """
        parent = self.resolve(symbol.names[:-1])
        if parent is None:
            raise ConstantRemovalError(symbol, "parent namespace no longer exists")
        if symbol.names[-1] not in vars(parent):
            raise ConstantRemovalError(symbol, "not defined")

        try:
            delattr(parent, symbol.names[-1])
        except Exception as e:
            raise ConstantRemovalError(symbol, str(e)) from e
        logger.debug(f"Deleted {symbol.name} from {self.namespace.__name__}")
