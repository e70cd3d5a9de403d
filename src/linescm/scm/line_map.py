"""Immutable line -> changeset view of a single file version."""

from __future__ import annotations

from datetime import datetime, timezone
from operator import attrgetter
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from ..exceptions import NoChangesetForLineError
from .models import Changeset


class LineScmMap:
    """Blame data for one file: which changeset last touched each line.

    Built once from a fully resolved mapping of 1-based line numbers to
    changesets. The latest changeset (maximum date over all lines) is computed
    at construction and cached. Instances never change afterwards, so they can
    be shared between threads without locking.

    Example:
        >>> scm = LineScmMap({1: c1, 2: c2})
        >>> scm.get_latest_changeset() is c2   # c2 is the most recent
        True
        >>> scm.has_changeset_for_line(3)
        False
    """

    __slots__ = ("_line_changesets", "_latest_changeset")

    def __init__(self, line_changesets: Mapping[int, Changeset]):
        lines = MappingProxyType(dict(line_changesets))
        object.__setattr__(self, "_line_changesets", lines)
        object.__setattr__(self, "_latest_changeset", _compute_latest_changeset(lines))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def get_latest_changeset(self) -> Optional[Changeset]:
        """Most recent changeset across all lines, or None when there are no lines."""
        return self._latest_changeset

    def get_changeset_for_line(self, line: int) -> Changeset:
        """Return the changeset for ``line``.

        Raises:
            NoChangesetForLineError: If the line has no entry
        """
        try:
            return self._line_changesets[line]
        except KeyError:
            raise NoChangesetForLineError(line) from None

    def has_changeset_for_line(self, line: int) -> bool:
        return line in self._line_changesets

    def get_all_changesets(self) -> Mapping[int, Changeset]:
        """Read-only view of every line -> changeset entry."""
        return self._line_changesets

    def lines_changed_after(self, date: datetime) -> list[int]:
        """Sorted line numbers whose changeset is strictly newer than ``date``."""
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        return sorted(
            line for line, changeset in self._line_changesets.items() if changeset.date > date
        )

    def to_dict(self) -> dict[str, Any]:
        latest = self._latest_changeset
        return {
            "latest_changeset": latest.to_dict() if latest is not None else None,
            "lines": {str(line): self._line_changesets[line].to_dict() for line in self},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LineScmMap:
        """Inverse of ``to_dict``; ``latest_changeset`` is recomputed, not read."""
        return cls({int(line): Changeset.from_dict(cs) for line, cs in data["lines"].items()})

    def __len__(self) -> int:
        return len(self._line_changesets)

    def __contains__(self, line: object) -> bool:
        return line in self._line_changesets

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._line_changesets))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineScmMap):
            return NotImplemented
        return dict(self._line_changesets) == dict(other._line_changesets)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"LineScmMap(latest_changeset={self._latest_changeset!r}, "
            f"line_changesets={dict(self._line_changesets)!r})"
        )


def _compute_latest_changeset(line_changesets: Mapping[int, Changeset]) -> Optional[Changeset]:
    # max() keeps the first of several equal dates
    return max(line_changesets.values(), key=attrgetter("date"), default=None)
