"""Unreloader CLI entry point."""

import logging
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from unreloader.app import Unreloader
from unreloader.config import load_project_config
from unreloader.reload.namespace import InvalidConstantNameError, parse_symbol_name
from unreloader.reload.reloader import DEFAULT_NAMESPACE

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def app_factory(namespace: ModuleType, name: str) -> Callable[[], object]:
    """Return a callable looking ``name`` up in ``namespace`` on every call."""
    names = parse_symbol_name(name)

    def factory() -> object:
        obj: object = namespace
        for part in names:
            obj = getattr(obj, part)
        return obj

    return factory


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Unreloader - reload changed source files without restarting."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.option("-r", "--require", "patterns", multiple=True, help="File glob to load and monitor")
@click.option("--app", "app_name", default=None, help="Name of the ASGI app in the namespace")
@click.option("--cooldown", type=float, default=None, help="Seconds between change checks")
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
def serve(
    patterns: tuple[str, ...],
    app_name: str | None,
    cooldown: float | None,
    host: str,
    port: int,
) -> None:
    """Serve an ASGI app, reloading changed files before each request.

    Defaults come from [tool.unreloader] in ./pyproject.toml.
    """
    import uvicorn

    project = load_project_config(Path.cwd())
    updates: dict[str, object] = {}
    if patterns:
        updates["require"] = list(patterns)
    if app_name:
        updates["app"] = app_name
    if cooldown is not None:
        updates["cooldown"] = cooldown
    project = project.model_copy(update=updates)

    if not project.app:
        raise click.UsageError("No app given; pass --app or set it in [tool.unreloader]")
    if not project.require:
        raise click.UsageError("No files given; pass --require or set it in [tool.unreloader]")

    try:
        names = parse_symbol_name(project.app)
    except InvalidConstantNameError as e:
        raise click.BadParameter(str(e), param_hint="--app") from e

    namespace = ModuleType(DEFAULT_NAMESPACE)
    unreloader = Unreloader(app_factory(namespace, ".".join(names)), project, namespace=namespace)
    # Lets units require further files
    namespace.unreloader = unreloader
    unreloader.require(project.require)
    for dependency, files in project.dependencies.items():
        unreloader.record_dependency(dependency, files)

    console.print(f"[bold green]Serving {project.app} on {host}:{port}[/bold green]")
    uvicorn.run(unreloader, host=host, port=port)


@cli.command()
@click.argument("patterns", nargs=-1, required=True)
def inspect(patterns: tuple[str, ...]) -> None:
    """Load files once and show what each of them defined."""
    unreloader = Unreloader(lambda: None, cooldown=None)
    unreloader.namespace.unreloader = unreloader
    try:
        try:
            unreloader.require(list(patterns))
        except Exception as e:
            console.print(f"[red]Failed to load: {type(e).__name__}: {e}[/red]")
            raise SystemExit(1) from e

        units = unreloader.reloader.units
        if not units:
            console.print("[yellow]No files matched[/yellow]")
            return

        table = Table(title="Loaded Units")
        table.add_column("Unit", style="cyan")
        table.add_column("State")
        table.add_column("Classes", style="green")
        table.add_column("Features", style="dim")

        for unit in units:
            features = unreloader.reloader.features_of(unit.path)
            table.add_row(
                str(unit.path),
                unit.state.value,
                " ".join(unit.symbol_names) or "-",
                " ".join(str(feature) for feature in features) or "-",
            )

        console.print(table)
    finally:
        unreloader.reset()


if __name__ == "__main__":
    cli()
