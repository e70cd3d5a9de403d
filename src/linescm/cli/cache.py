"""Cache management commands."""

import typer

from ..scm import BlameCache
from . import app
from ._common import console


@app.command()
def cache_clear(ctx: typer.Context):
    """Clear the previous-analysis blame cache."""
    config = ctx.obj["config"]
    cache_path = config.cache_path(ctx.obj["repo"])

    if not (cache_path / "blame_cache.db").exists():
        console.print("[yellow]No blame cache found[/yellow]")
        raise typer.Exit(0)

    with BlameCache(cache_path) as cache:
        count = cache.file_count()
        cache.clear()
    console.print(f"[green]Cleared blame data for {count} file(s)[/green]")
