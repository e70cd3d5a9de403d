"""SQLite-based store of blame data from previous analyses.

When git cannot blame a file (shallow clone, exported tree, git missing),
the data recorded by an earlier run can be reused as long as the file's
content has not changed since.

Cache location: .linescm/blame_cache.db
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..logging_config import get_logger
from .line_map import LineScmMap
from .models import Changeset

logger = get_logger(__name__)

# Schema version for migrations
_SCHEMA_VERSION = 1


class BlameCache:
    """Per-file blame data keyed by repository-relative path.

    Each stored map carries the content hash of the file it was computed
    for, so callers can tell whether it still describes the file on disk.

    Usage:
        with BlameCache("/path/to/.linescm") as cache:
            cache.store("src/app.py", content_hash, scm_map)
            entry = cache.load("src/app.py")
            if entry and entry[0] == content_hash:
                scm_map = entry[1]
    """

    def __init__(self, cache_dir: str | Path):
        """Initialize cache with its directory (created if needed)."""
        self._cache_dir = Path(cache_dir)
        self._cache_dir.mkdir(parents=True, exist_ok=True)
        self._db_path = self._cache_dir / "blame_cache.db"
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema."""
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row

        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS cache_meta (
                key TEXT PRIMARY KEY,
                value TEXT
            );

            CREATE TABLE IF NOT EXISTS files (
                path TEXT PRIMARY KEY,
                content_hash TEXT NOT NULL,
                analyzed_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS line_changesets (
                path TEXT NOT NULL,
                line INTEGER NOT NULL,
                revision TEXT NOT NULL,
                author TEXT,
                date TEXT NOT NULL,
                PRIMARY KEY (path, line),
                FOREIGN KEY (path) REFERENCES files(path)
            );
            """
        )

        version = self._get_meta("schema_version")
        if version is None:
            self._set_meta("schema_version", str(_SCHEMA_VERSION))
        elif int(version) != _SCHEMA_VERSION:
            logger.warning(
                "Cache schema version mismatch: %s vs %s. Clearing cache.",
                version,
                _SCHEMA_VERSION,
            )
            self.clear()

        self._conn.commit()

    def _get_meta(self, key: str) -> str | None:
        if self._conn is None:
            return None
        row = self._conn.execute("SELECT value FROM cache_meta WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def _set_meta(self, key: str, value: str) -> None:
        if self._conn is None:
            return
        self._conn.execute(
            "INSERT OR REPLACE INTO cache_meta (key, value) VALUES (?, ?)",
            (key, value),
        )
        self._conn.commit()

    def store(self, path: str, content_hash: str, scm_map: LineScmMap) -> None:
        """Record ``scm_map`` for ``path``, replacing any previous entry."""
        if self._conn is None:
            return

        with self._conn:
            self._conn.execute("DELETE FROM line_changesets WHERE path = ?", (path,))
            self._conn.execute(
                "INSERT OR REPLACE INTO files (path, content_hash, analyzed_at) VALUES (?, ?, ?)",
                (path, content_hash, datetime.now(tz=timezone.utc).isoformat()),
            )
            self._conn.executemany(
                "INSERT INTO line_changesets (path, line, revision, author, date) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    (path, line, cs.revision, cs.author, cs.date.isoformat())
                    for line, cs in scm_map.get_all_changesets().items()
                ],
            )

        logger.debug("Cached blame for %s (%d lines)", path, len(scm_map))

    def load(self, path: str) -> Optional[tuple[str, LineScmMap]]:
        """Return ``(content_hash, scm_map)`` recorded for ``path``, or None."""
        if self._conn is None:
            return None

        row = self._conn.execute(
            "SELECT content_hash FROM files WHERE path = ?", (path,)
        ).fetchone()
        if row is None:
            return None

        by_revision: dict[tuple[str, Optional[str], str], Changeset] = {}
        changesets: dict[int, Changeset] = {}
        for r in self._conn.execute(
            "SELECT line, revision, author, date FROM line_changesets WHERE path = ? ORDER BY line",
            (path,),
        ):
            key = (r["revision"], r["author"], r["date"])
            changeset = by_revision.get(key)
            if changeset is None:
                changeset = Changeset(
                    revision=r["revision"],
                    date=datetime.fromisoformat(r["date"]),
                    author=r["author"],
                )
                by_revision[key] = changeset
            changesets[r["line"]] = changeset

        return row["content_hash"], LineScmMap(changesets)

    def file_count(self) -> int:
        """Get number of files with cached blame data."""
        if self._conn is None:
            return 0
        row = self._conn.execute("SELECT COUNT(*) as cnt FROM files").fetchone()
        return row["cnt"] if row else 0

    def clear(self) -> None:
        """Clear all cached data."""
        if self._conn is None:
            return
        self._conn.executescript(
            """
            DELETE FROM line_changesets;
            DELETE FROM files;
            DELETE FROM cache_meta;
            """
        )
        self._conn.commit()
        self._set_meta("schema_version", str(_SCHEMA_VERSION))
        logger.debug("Cleared blame cache")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> BlameCache:
        return self

    def __exit__(self, *args) -> None:
        self.close()
