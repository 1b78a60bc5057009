"""Reloader configuration.

Options can be given in code or read from the ``[tool.unreloader]`` table of
a project's ``pyproject.toml``::

    [tool.unreloader]
    require = ["app/*.py"]
    app = "App"
    cooldown = 0.5
    subclasses = ["Model"]

    [tool.unreloader.dependencies]
    "app/models.py" = ["app/views.py"]
"""

import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class ReloaderConfig(BaseModel):
    """Options controlling how and when units are reloaded."""

    # Seconds between change checks; 0 checks on every call, None never checks
    cooldown: float | None = 1.0
    # False just executes required files once (production mode)
    reload: bool = True
    # Only subclasses of these classes (or modules with these exact names)
    # are removed on unload
    subclasses: list[str] = Field(default_factory=list)
    # How deep to look for nested classes and modules in the namespace
    max_depth: int = Field(default=8, ge=1)

    @field_validator("subclasses", mode="before")
    @classmethod
    def _coerce_subclasses(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("cooldown")
    @classmethod
    def _check_cooldown(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError("cooldown must not be negative")
        return value


class ProjectConfig(ReloaderConfig):
    """Reloader options plus what a project wants loaded and served."""

    require: list[str] = Field(default_factory=list)
    dependencies: dict[str, list[str]] = Field(default_factory=dict)
    app: str | None = None

    @field_validator("require", mode="before")
    @classmethod
    def _coerce_require(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value


def load_project_config(root: Path | None = None) -> ProjectConfig:
    """Read ``[tool.unreloader]`` from ``pyproject.toml`` under ``root``.

    Returns the defaults when there is no pyproject.toml or no table.
    """
    root = root or Path.cwd()
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        return ProjectConfig()

    import tomli

    data = tomli.loads(pyproject.read_text())
    table = data.get("tool", {}).get("unreloader", {})
    logger.debug(f"Loaded [tool.unreloader] from {pyproject}: {table}")
    return ProjectConfig.model_validate(table)
