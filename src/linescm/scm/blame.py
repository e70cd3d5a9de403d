"""Extract per-line blame data via git subprocess."""

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Optional

from ..exceptions import BlameParseError
from ..logging_config import get_logger
from .line_map import LineScmMap
from .models import Changeset

logger = get_logger(__name__)

# git blame attributes uncommitted lines to the null sha
NOT_COMMITTED_SHA = "0" * 40

# Matches: <sha> <orig line> <final line> [<lines in group>]
_HEADER_RE = re.compile(r"^([0-9a-f]{40}) (\d+) (\d+)(?: \d+)?$")


def parse_porcelain(raw: str) -> dict[int, Changeset]:
    """Parse ``git blame --line-porcelain`` output into line -> Changeset.

    Every record repeats the full commit headers, so each one is parsed on
    its own and closed by its TAB-prefixed content line. Changeset objects
    are shared between lines of the same revision.

    Raises:
        BlameParseError: If a record has no usable author-time
    """
    changesets: dict[int, Changeset] = {}
    by_revision: dict[str, Changeset] = {}

    sha: Optional[str] = None
    final_line = 0
    author: Optional[str] = None
    author_mail: Optional[str] = None
    author_time: Optional[str] = None

    for row in raw.split("\n"):
        if row.startswith("\t"):
            if sha is None:
                raise BlameParseError("content line without a record header")
            if sha != NOT_COMMITTED_SHA:
                changeset = by_revision.get(sha)
                if changeset is None:
                    if author_time is None:
                        raise BlameParseError(f"missing author-time for {sha}", line=final_line)
                    try:
                        timestamp = int(author_time)
                    except ValueError:
                        raise BlameParseError(
                            f"bad author-time {author_time!r}", line=final_line
                        ) from None
                    changeset = Changeset.from_timestamp(
                        sha, timestamp, author=author_mail or author
                    )
                    by_revision[sha] = changeset
                changesets[final_line] = changeset
            sha = None
            continue

        match = _HEADER_RE.match(row)
        if match and sha is None:
            sha = match.group(1)
            final_line = int(match.group(3))
            author = author_mail = author_time = None
        elif row.startswith("author-mail "):
            author_mail = row[len("author-mail "):].strip().strip("<>") or None
        elif row.startswith("author-time "):
            author_time = row[len("author-time "):].strip()
        elif row.startswith("author "):
            author = row[len("author "):].strip() or None

    return changesets


class GitBlameExtractor:
    """Run git blame on one file and turn it into a LineScmMap."""

    def __init__(
        self, repo_path: str | Path, timeout_seconds: int = 30, max_output_mb: float = 50.0
    ):
        self.repo_path = Path(repo_path).resolve()
        self.timeout_seconds = timeout_seconds
        self.max_output_bytes = int(max_output_mb * 1024 * 1024)

    def extract(self, file_path: str | Path) -> Optional[LineScmMap]:
        """Blame ``file_path``. Return None when git cannot provide data."""
        if not self._is_git_repo():
            logger.info("Not a git repository, no blame for %s", file_path)
            return None

        rel_path = self._relative(file_path)
        if rel_path is None:
            logger.warning("%s is outside repository %s", file_path, self.repo_path)
            return None

        raw = self._run_blame(rel_path)
        if raw is None:
            return None

        changesets = parse_porcelain(raw)
        logger.debug("Blamed %d lines of %s", len(changesets), rel_path)
        return LineScmMap(changesets)

    def _relative(self, file_path: str | Path) -> Optional[str]:
        path = Path(file_path)
        if not path.is_absolute():
            path = self.repo_path / path
        try:
            return path.resolve().relative_to(self.repo_path).as_posix()
        except ValueError:
            return None

    def _is_git_repo(self) -> bool:
        try:
            result = subprocess.run(
                ["git", "-C", str(self.repo_path), "rev-parse", "--git-dir"],
                capture_output=True,
                text=True,
                timeout=5,
            )
            return result.returncode == 0
        except (FileNotFoundError, subprocess.TimeoutExpired):
            return False

    def _run_blame(self, rel_path: str) -> Optional[str]:
        cmd = ["git", "-C", str(self.repo_path), "blame", "--line-porcelain", "--", rel_path]
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            logger.warning("git blame error: %s", e)
            return None

        try:
            # communicate drains stdout and stderr together under one deadline
            stdout, stderr = proc.communicate(timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired:
            logger.warning("git blame timed out after %ds for %s", self.timeout_seconds, rel_path)
            proc.kill()
            # children of git may still hold the pipes; do not drain them
            proc.wait()
            for pipe in (proc.stdout, proc.stderr):
                if pipe:
                    pipe.close()
            return None

        if proc.returncode != 0:
            logger.warning("git blame failed for %s: %s", rel_path, (stderr or "").strip())
            return None

        if len(stdout) > self.max_output_bytes:
            # a truncated blame would silently drop lines
            logger.warning(
                "git blame output for %s exceeded %d bytes, skipping",
                rel_path,
                self.max_output_bytes,
            )
            return None

        return stdout
