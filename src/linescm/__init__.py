"""
linescm - per-line source-control metadata

Blame data for a single file version: which changeset last touched each
line, and the file's most recent changeset.
"""

__version__ = "0.1.0"

from .exceptions import LineScmError, NoChangesetForLineError
from .scm import Changeset, LineScmMap, ScmInfoRepository

__all__ = [
    "Changeset",
    "LineScmMap",
    "ScmInfoRepository",
    "LineScmError",
    "NoChangesetForLineError",
]
