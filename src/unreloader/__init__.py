"""Unreloader - reload changed source files in a running process."""

from unreloader.app import Unreloader, expand_paths
from unreloader.config import ReloaderConfig
from unreloader.reload import Reloader, SubclassFilter

__version__ = "0.1.0"

__all__ = [
    "Reloader",
    "ReloaderConfig",
    "SubclassFilter",
    "Unreloader",
    "expand_paths",
]
