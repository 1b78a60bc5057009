"""Reloading ASGI application wrapper."""

import glob
import logging
import os
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from types import ModuleType
from typing import Any

from starlette.types import ASGIApp, Receive, Scope, Send

from unreloader.config import ReloaderConfig
from unreloader.reload.filters import RemovalFilter
from unreloader.reload.loader import SourceLoader, UnitLoader
from unreloader.reload.reloader import DEFAULT_NAMESPACE, Reloader

PathSpec = str | Path | Iterable[Any]


def _flatten(paths: PathSpec) -> list[str]:
    if isinstance(paths, str | Path):
        return [str(paths)]
    flat: list[str] = []
    for path in paths:
        flat.extend(_flatten(path))
    return flat


def expand_paths(paths: PathSpec) -> list[Path]:
    """Expand a glob or nested list of globs into absolute paths.

    Matches of each glob are ordered shallowest first. Duplicates are
    dropped, keeping the first occurrence.
    """
    expanded: list[Path] = []
    for pattern in _flatten(paths):
        matches = sorted(glob.glob(pattern, recursive=True), key=lambda match: match.count(os.sep))
        for match in matches:
            path = Path(match).absolute()
            if path not in expanded:
                expanded.append(path)
    return expanded


def _unit_files(paths: list[Path]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(path.rglob("*.py")))
        else:
            files.append(path)
    return files


class Unreloader:
    """ASGI app that reloads changed units before handling a request.

    ``app_factory`` is called on every request, so it should look the
    application up again (for example ``lambda: namespace.App``) rather
    than close over an object that a reload replaces.
    """

    def __init__(
        self,
        app_factory: Callable[[], ASGIApp],
        config: ReloaderConfig | None = None,
        *,
        namespace: ModuleType | None = None,
        loader: UnitLoader | None = None,
        logger: logging.Logger | None = None,
        **options: Any,
    ):
        self.app_factory = app_factory
        if config is None:
            config = ReloaderConfig(**options)
        elif options:
            # Keyword options override the given config
            config = type(config).model_validate({**config.model_dump(), **options})
        self.config = config
        self.reloader: Reloader | None = None
        self._last_check = float("-inf")

        if self.config.reload:
            self.reloader = Reloader(self.config, namespace=namespace, loader=loader, logger=logger)
            self.namespace = self.reloader.namespace
            self.loader = self.reloader.loader
        else:
            self.namespace = namespace or ModuleType(DEFAULT_NAMESPACE)
            self.loader = loader or SourceLoader(self.namespace)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.poll()
        await self.app_factory()(scope, receive, send)

    def poll(self) -> bool:
        """Reload changed units if the cooldown has passed.

        Callers arriving while a reload runs wait for it, then return
        without checking again unless the cooldown has passed once more.

        Returns:
            True if a reload check ran.
        """
        if self.reloader is None or self.config.cooldown is None:
            return False

        with self.reloader.lock:
            if time.monotonic() - self._last_check < self.config.cooldown:
                return False
            self.reloader.reload()
            self._last_check = time.monotonic()
        return True

    def require(self, paths: PathSpec, removal_filter: RemovalFilter | None = None) -> None:
        """Load and monitor the files matching ``paths``.

        ``removal_filter`` decides which of the symbols the files define are
        removed again when they are reloaded.
        """
        files = _unit_files(expand_paths(paths))
        if self.reloader is None:
            for path in files:
                self.loader.load(path)
            return
        self.reloader.require_dependencies(files, removal_filter)

    def record_dependency(self, dependency: PathSpec, *files: PathSpec) -> None:
        """Reload every file in ``files`` after ``dependency`` changes."""
        if self.reloader is None:
            return
        dependents = expand_paths(files)
        for path in expand_paths(dependency):
            self.reloader.record_dependency(path, dependents)

    def reset(self) -> None:
        """Unload everything that was required."""
        if self.reloader is not None:
            self.reloader.clear()
        self._last_check = float("-inf")
