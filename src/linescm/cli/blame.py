"""Blame CLI commands -- inspect per-line changesets of one file."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import LineScmError
from ..scm import LineScmMap
from . import app
from ._common import console, format_changeset, open_repository, require_scm_info


@app.command()
def blame(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File to blame, relative to the repository root"),
    line: Optional[int] = typer.Option(
        None,
        "--line",
        "-l",
        help="Only show the changeset of this line",
        min=1,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    no_cache: bool = typer.Option(
        False,
        "--no-cache",
        help="Neither read nor record previous-analysis blame data",
    ),
):
    """
    Show the changeset that last touched each line of a file.

    [bold cyan]Examples:[/bold cyan]

      linescm blame src/app.py

      linescm blame src/app.py --line 42

      linescm blame src/app.py --json
    """
    try:
        with open_repository(ctx, no_cache=no_cache) as repository:
            scm_info = require_scm_info(repository, path)

        if line is not None:
            changeset = scm_info.get_changeset_for_line(line)
            if json_output:
                print(json.dumps({"line": line, **changeset.to_dict()}, indent=2))
            else:
                console.print(f"{line}: {format_changeset(changeset)}")
            return

        if json_output:
            print(json.dumps(scm_info.to_dict(), indent=2))
        else:
            _output_rich(path, scm_info)

    except LineScmError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def latest(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File to inspect"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
):
    """
    Show the most recent changeset of a file.
    """
    try:
        with open_repository(ctx) as repository:
            scm_info = require_scm_info(repository, path)
    except LineScmError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    changeset = scm_info.get_latest_changeset()
    if json_output:
        print(json.dumps(changeset.to_dict() if changeset else None, indent=2))
    else:
        console.print(format_changeset(changeset))


@app.command()
def since(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File to inspect"),
    date: str = typer.Argument(..., help="ISO date, e.g. 2024-01-31 or 2024-01-31T12:00+02:00"),
    json_output: bool = typer.Option(False, "--json", help="Output JSON"),
):
    """
    List lines changed after DATE (naive dates are UTC).
    """
    try:
        cutoff = datetime.fromisoformat(date)
    except ValueError:
        console.print(f"[red]Invalid date:[/red] {date}")
        raise typer.Exit(2)

    try:
        with open_repository(ctx) as repository:
            scm_info = require_scm_info(repository, path)
    except LineScmError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    lines = scm_info.lines_changed_after(cutoff)
    if json_output:
        print(json.dumps(lines))
        return

    if not lines:
        console.print(f"[green]No lines changed after {cutoff.isoformat()}[/green]")
        return
    console.print(f"[bold]{len(lines)}[/bold] line(s) changed after {cutoff.isoformat()}:")
    for line_number in lines:
        console.print(f"  {line_number}: {format_changeset(scm_info.get_changeset_for_line(line_number))}")


def _output_rich(path: Path, scm_info: LineScmMap) -> None:
    latest_changeset = scm_info.get_latest_changeset()

    table = Table(title=f"Blame: {path}", show_lines=False)
    table.add_column("Line", justify="right", style="cyan")
    table.add_column("Revision", style="magenta")
    table.add_column("Author")
    table.add_column("Date")

    for line_number in scm_info:
        changeset = scm_info.get_changeset_for_line(line_number)
        style = "bold green" if changeset == latest_changeset else None
        table.add_row(
            str(line_number),
            changeset.revision[:12],
            changeset.author or "unknown",
            f"{changeset.date:%Y-%m-%d %H:%M}",
            style=style,
        )

    console.print(table)
    console.print(f"Latest: {format_changeset(latest_changeset)}")
