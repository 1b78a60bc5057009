"""Load stack and attribution of new symbols to the unit that created them."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from unreloader.reload.namespace import NamespaceSnapshot, SymbolPath

logger = logging.getLogger(__name__)


@dataclass
class LoadFrame:
    """A unit that is currently being executed."""

    path: Path
    pre_load_snapshot: frozenset[SymbolPath]
    parent: "LoadFrame | None" = None
    features: list[Path] = field(default_factory=list)

    def add_feature(self, path: Path) -> None:
        if path not in self.features:
            self.features.append(path)


@dataclass
class Attribution:
    """Symbols and nested features credited to a unit after it loaded."""

    symbols: frozenset[SymbolPath]
    features: list[Path]

    @property
    def symbol_names(self) -> list[str]:
        return sorted(symbol.name for symbol in self.symbols)


class LoadStack:
    """Tracks the chain of nested unit loads.

    A unit that requires another unit while it executes pushes a second
    frame on top of its own. Frames always complete innermost first, so a
    nested unit has claimed its symbols before the enclosing frame computes
    its own delta.
    """

    def __init__(self, snapshot: NamespaceSnapshot):
        self.snapshot = snapshot
        self._top: LoadFrame | None = None

    @property
    def current(self) -> LoadFrame | None:
        return self._top

    @property
    def depth(self) -> int:
        depth = 0
        frame = self._top
        while frame is not None:
            depth += 1
            frame = frame.parent
        return depth

    def is_loading(self, path: Path) -> bool:
        frame = self._top
        while frame is not None:
            if frame.path == path:
                return True
            frame = frame.parent
        return False

    def begin(self, path: Path) -> LoadFrame:
        frame = LoadFrame(path=path, pre_load_snapshot=self.snapshot.take(), parent=self._top)
        self._top = frame
        logger.debug(f"Pushed load frame for {path} (depth {self.depth})")
        return frame

    def _pop(self, frame: LoadFrame) -> None:
        if frame is not self._top:
            raise RuntimeError(f"Load frame for {frame.path} is not the innermost frame")
        self._top = frame.parent

    def _delta(
        self, frame: LoadFrame, is_owned: Callable[[SymbolPath], bool]
    ) -> frozenset[SymbolPath]:
        created = self.snapshot.take() - frame.pre_load_snapshot
        return frozenset(symbol for symbol in created if not is_owned(symbol))

    def end(self, frame: LoadFrame, is_owned: Callable[[SymbolPath], bool]) -> Attribution:
        """Finish a successful load and return what it created."""
        self._pop(frame)
        return Attribution(symbols=self._delta(frame, is_owned), features=list(frame.features))

    def fail(
        self, frame: LoadFrame, is_owned: Callable[[SymbolPath], bool]
    ) -> frozenset[SymbolPath]:
        """Finish a failed load and return the symbols it left behind."""
        self._pop(frame)
        return self._delta(frame, is_owned)
