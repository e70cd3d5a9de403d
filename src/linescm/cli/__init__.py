"""CLI entry point — registers all subcommands."""

from pathlib import Path
from typing import Optional

import typer

from .. import __version__
from ..config import load_config
from ..exceptions import LineScmError
from ..logging_config import setup_logging
from ._common import console

app = typer.Typer(
    name="linescm",
    help="linescm - per-line blame data for files in a git repository",
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"linescm {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    repo: Path = typer.Option(
        Path("."),
        "--repo",
        "-C",
        help="Repository root",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="TOML configuration file",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """
    Show which changeset last touched each line of a file.
    """
    try:
        settings = load_config(config_file=config, verbose=verbose, quiet=quiet)
    except LineScmError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
    )
    ctx.obj = {"repo": repo, "config": settings}


# Import subcommands to register them
from .blame import blame as _blame, latest as _latest, since as _since  # noqa: F401, E402
from .cache import cache_clear as _cache_clear  # noqa: F401, E402
