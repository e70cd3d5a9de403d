"""SCM data exceptions: missing line entries, malformed changesets, blame output."""

from typing import Any, Optional

from .base import LineScmError


class ScmDataError(LineScmError):
    """Base class for errors in per-line SCM data."""

    pass


class NoChangesetForLineError(ScmDataError, ValueError):
    """Raised when a line number has no changeset in a LineScmMap.

    Callers are expected to guard with ``has_changeset_for_line`` first, so
    this signals a programming error rather than a data problem.
    """

    def __init__(self, line: int):
        super().__init__(f"Line {line} doesn't have a changeset")
        self.line = line


class InvalidChangesetError(ScmDataError, ValueError):
    """Raised when a changeset is built from unusable values."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid changeset {field}: {value!r}",
            details={"field": field, "reason": reason},
        )
        self.field = field
        self.value = value
        self.reason = reason


class BlameParseError(ScmDataError):
    """Raised when git blame porcelain output cannot be parsed."""

    def __init__(self, reason: str, line: Optional[int] = None):
        details = {"reason": reason}
        if line is not None:
            details["line"] = str(line)

        super().__init__(f"Cannot parse blame output: {reason}", details=details)
        self.reason = reason
        self.line = line
