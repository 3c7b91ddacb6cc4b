"""Domain models for recorded activity."""

from __future__ import annotations

import sqlite3
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from .config import EXPIRATION_WINDOW


def timestamp(now: Optional[float] = None) -> int:
    """Whole seconds since the epoch, taken from the wall clock unless given."""
    return int(time.time() if now is None else now)


@dataclass(slots=True)
class Activity:
    """A log entry viewed at a given moment.

    ``started`` and ``duration`` are stored values in seconds. Whether the
    entry is active is never stored: it depends on the current flag and on how
    long ago the entry was last touched, so every check takes ``now`` (the wall
    clock when omitted). An activity without ``id`` stands for an empty log.
    """

    id: Optional[int] = None
    name: str = ""
    started: int = 0
    duration: int = 0
    current: bool = False

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Activity":
        return cls(
            id=row["id"],
            name=row["name"],
            started=row["started"],
            duration=row["duration"],
            current=row["current"] == 1,
        )

    @property
    def is_empty(self) -> bool:
        return self.id is None

    def started_at(self, now: Optional[float] = None) -> int:
        if self.is_empty:
            return timestamp(now)
        return self.started

    def updated_at(self, now: Optional[float] = None) -> int:
        """When the entry was last touched (``started + duration``)."""
        if self.is_empty:
            return timestamp(now)
        return self.started + self.duration

    def expired(self, now: Optional[float] = None) -> bool:
        idle = timestamp(now) - self.updated_at(now)
        return idle > EXPIRATION_WINDOW.total_seconds()

    def active(self, now: Optional[float] = None) -> bool:
        return self.current and not self.expired(now)

    def elapsed(self, now: Optional[float] = None) -> timedelta:
        """Live duration while active, the stored one otherwise."""
        if self.active(now):
            return timedelta(seconds=timestamp(now) - self.started_at(now))
        return timedelta(seconds=self.duration)

    def time_since(self, now: Optional[float] = None) -> timedelta:
        """Time spent on the activity, or time since it stopped if inactive."""
        if self.active(now):
            return timedelta(seconds=timestamp(now) - self.started_at(now))
        return timedelta(seconds=timestamp(now) - self.updated_at(now))
