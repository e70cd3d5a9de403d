"""Exception hierarchy for linescm."""

from .analysis import AnalysisError, FileAccessError
from .base import LineScmError
from .config import ConfigurationError, InvalidConfigError
from .scm import (
    BlameParseError,
    InvalidChangesetError,
    NoChangesetForLineError,
    ScmDataError,
)

__all__ = [
    "LineScmError",
    "ScmDataError",
    "NoChangesetForLineError",
    "InvalidChangesetError",
    "BlameParseError",
    "AnalysisError",
    "FileAccessError",
    "ConfigurationError",
    "InvalidConfigError",
]
