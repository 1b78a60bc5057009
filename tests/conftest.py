"""Pytest configuration and fixtures."""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from unreloader.reload.watcher import ModificationWatcher


@pytest.fixture(scope="session")
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


class FakeMtimeWatcher(ModificationWatcher):
    """Watcher whose modification times are set by the test."""

    def __init__(self) -> None:
        super().__init__()
        self.mtimes: dict[Path, float] = {}

    def modified_at(self, path: Path) -> float | None:
        if path in self.mtimes:
            return self.mtimes[path]
        return super().modified_at(path)


class EventLog(logging.Handler):
    """Collects the messages logged by a reloader, in order."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


@pytest.fixture
def event_log(request) -> tuple[logging.Logger, EventLog]:
    """A dedicated logger for one test and the handler recording it."""
    log = logging.getLogger(f"unreloader.test.{request.node.name}")
    log.setLevel(logging.INFO)
    log.propagate = False
    handler = EventLog()
    log.addHandler(handler)
    yield log, handler
    log.removeHandler(handler)


@pytest.fixture
def write_unit(tmp_path: Path) -> Callable[..., Path]:
    """Write a unit file under tmp_path and return its absolute path."""

    def write(name: str, source: str) -> Path:
        path = (tmp_path / name).absolute()
        path.write_text(source)
        return path

    return write


@pytest.fixture
def mtime_watcher() -> FakeMtimeWatcher:
    """A modification watcher driven by the test instead of the filesystem."""
    return FakeMtimeWatcher()
