"""Data models for per-line SCM (blame) information."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from ..exceptions import InvalidChangesetError


@dataclass(frozen=True)
class Changeset:
    """One commit that last touched a line.

    Naive dates are taken as UTC so every changeset sorts on a single
    timeline.
    """

    revision: str
    date: datetime
    author: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.revision, str) or not self.revision:
            raise InvalidChangesetError("revision", self.revision, "must be a non-empty string")
        if not isinstance(self.date, datetime):
            raise InvalidChangesetError("date", self.date, "must be a datetime")
        if self.date.tzinfo is None:
            # frozen: bypass __setattr__
            object.__setattr__(self, "date", self.date.replace(tzinfo=timezone.utc))

    @classmethod
    def from_timestamp(
        cls, revision: str, timestamp: int | float, author: Optional[str] = None
    ) -> Changeset:
        """Build a changeset from unix seconds."""
        return cls(
            revision=revision,
            date=datetime.fromtimestamp(timestamp, tz=timezone.utc),
            author=author,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "revision": self.revision,
            "author": self.author,
            "date": self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Changeset:
        return cls(
            revision=data["revision"],
            date=datetime.fromisoformat(data["date"]),
            author=data.get("author"),
        )
