"""Execution of unit source files into the shared namespace."""

import logging
from pathlib import Path
from types import ModuleType
from typing import Protocol

logger = logging.getLogger(__name__)


class UnitLoader(Protocol):
    """What the reloader needs from whatever executes a unit."""

    def load(self, path: Path) -> bool: ...

    def unload(self, path: Path) -> None: ...

    def is_loaded(self, path: Path) -> bool: ...


class SourceLoader:
    """Executes Python source files into a namespace module.

    Every unit runs with the namespace's ``__dict__`` as its globals, so
    definitions made by one unit are visible to all the others. A path is
    executed at most once until ``unload`` forgets it.
    """

    def __init__(self, namespace: ModuleType):
        self.namespace = namespace
        self._loaded: list[Path] = []

    @property
    def loaded(self) -> list[Path]:
        return list(self._loaded)

    def is_loaded(self, path: Path) -> bool:
        return path in self._loaded

    def load(self, path: Path) -> bool:
        """Execute ``path`` unless it is already loaded.

        Returns:
            True if the file was executed, False if it was already loaded.
        """
        if self.is_loaded(path):
            return False

        source = path.read_text()
        code = compile(source, str(path), "exec")
        # Registered before executing so a unit that requires itself
        # does not run twice.
        self._loaded.append(path)
        try:
            exec(code, vars(self.namespace))
        except BaseException:
            self._loaded.remove(path)
            raise

        logger.debug(f"Executed {path} in {self.namespace.__name__}")
        return True

    def unload(self, path: Path) -> None:
        if path in self._loaded:
            self._loaded.remove(path)
