"""Per-line SCM data: changesets, blame extraction, and caching."""

from .blame import GitBlameExtractor, parse_porcelain
from .cache import BlameCache
from .line_map import LineScmMap
from .models import Changeset
from .repository import ScmInfoRepository

__all__ = [
    "Changeset",
    "LineScmMap",
    "GitBlameExtractor",
    "BlameCache",
    "ScmInfoRepository",
    "parse_porcelain",
]
