"""Decide where a file's blame data comes from.

Fresh git blame output wins. When git has nothing to offer, the data
recorded by a previous analysis is inherited, but only for files whose
content is byte-for-byte what that analysis saw.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional

from ..config import ScmConfig
from ..exceptions import FileAccessError
from ..logging_config import get_logger
from .blame import GitBlameExtractor
from .cache import BlameCache
from .line_map import LineScmMap

logger = get_logger(__name__)


class ScmInfoRepository:
    """Per-run source of LineScmMap instances, one per file.

    Results (including "no SCM info") are memoized for the lifetime of the
    repository object.
    """

    def __init__(
        self,
        repo_path: str | Path,
        config: Optional[ScmConfig] = None,
        extractor: Optional[GitBlameExtractor] = None,
        cache: Optional[BlameCache] = None,
    ):
        self.repo_path = Path(repo_path).resolve()
        self.config = config or ScmConfig()
        self.extractor = extractor or GitBlameExtractor(
            self.repo_path,
            timeout_seconds=self.config.git_timeout_seconds,
            max_output_mb=self.config.max_blame_output_mb,
        )
        self._owns_cache = cache is None and self.config.cache_enabled
        if cache is None and self.config.cache_enabled:
            cache = BlameCache(self.config.cache_path(self.repo_path))
        self.cache = cache
        self._memo: dict[str, Optional[LineScmMap]] = {}

    def get_scm_info(self, file_path: str | Path) -> Optional[LineScmMap]:
        """Return blame data for ``file_path``, or None if none is available.

        Raises:
            FileAccessError: If the file cannot be read
        """
        key = self._key(file_path)
        if key in self._memo:
            return self._memo[key]

        scm_info = self._load(key)
        self._memo[key] = scm_info
        return scm_info

    def _load(self, key: str) -> Optional[LineScmMap]:
        content_hash = self._content_hash(self.repo_path / key)

        scm_info = self.extractor.extract(self.repo_path / key)
        if scm_info is not None:
            if self.cache is not None:
                self.cache.store(key, content_hash, scm_info)
            return scm_info

        if not self.config.fallback_to_previous_analysis or self.cache is None:
            logger.info("No SCM info for %s", key)
            return None

        previous = self.cache.load(key)
        if previous is None:
            logger.info("No SCM info for %s and no previous analysis", key)
            return None

        previous_hash, previous_info = previous
        if previous_hash != content_hash:
            logger.info("No SCM info for %s; file changed since previous analysis", key)
            return None

        logger.debug("Reusing SCM info of %s from previous analysis", key)
        return previous_info

    def _key(self, file_path: str | Path) -> str:
        path = Path(file_path)
        if not path.is_absolute():
            path = self.repo_path / path
        path = path.resolve()
        try:
            return path.relative_to(self.repo_path).as_posix()
        except ValueError:
            raise FileAccessError(path, f"outside repository {self.repo_path}") from None

    @staticmethod
    def _content_hash(path: Path) -> str:
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileAccessError(path, str(e)) from e
        return hashlib.sha1(data).hexdigest()

    def close(self) -> None:
        """Close the cache if this repository opened it."""
        if self.cache is not None and self._owns_cache:
            self.cache.close()

    def __enter__(self) -> ScmInfoRepository:
        return self

    def __exit__(self, *args) -> None:
        self.close()
