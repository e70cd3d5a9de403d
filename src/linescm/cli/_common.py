"""Shared CLI helpers."""

import dataclasses
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from ..config import ScmConfig
from ..scm import Changeset, LineScmMap, ScmInfoRepository

console = Console()


def open_repository(ctx: typer.Context, no_cache: bool = False) -> ScmInfoRepository:
    """Build a ScmInfoRepository from the options of the root callback."""
    config: ScmConfig = ctx.obj["config"]
    if no_cache:
        config = dataclasses.replace(config, cache_enabled=False)
    return ScmInfoRepository(ctx.obj["repo"], config=config)


def require_scm_info(repository: ScmInfoRepository, path: Path) -> LineScmMap:
    """Fetch blame data or exit 1 when the file has none."""
    scm_info = repository.get_scm_info(path)
    if scm_info is None:
        console.print(f"[yellow]No SCM information available for[/yellow] {path}")
        raise typer.Exit(1)
    return scm_info


def format_changeset(changeset: Optional[Changeset]) -> str:
    """One-line summary used in plain output."""
    if changeset is None:
        return "-"
    author = changeset.author or "unknown"
    return f"{changeset.revision[:12]}  {author}  {changeset.date:%Y-%m-%d %H:%M:%S %Z}"
