"""Aggregation of tracked time for reminders and reports."""

from __future__ import annotations

import sqlite3
from contextlib import closing
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .config import ACTIVE_RUN_LOOKBACK, EXPIRATION_WINDOW
from .db import fetch_daily_totals, iter_recent
from .models import Activity, timestamp
from .presenter import format_duration
from .tracker import latest


@dataclass(slots=True)
class DailyTotal:
    name: str
    duration: timedelta


@dataclass(slots=True)
class Report:
    title: str
    body: str

    @property
    def text(self) -> str:
        if not self.body:
            return self.title
        return f"{self.title}\n\n{self.body}"


def continues_active_run(
    prev: Optional[Activity], cur: Activity, now: Optional[float] = None
) -> bool:
    """Whether ``cur`` belongs to the same stretch of work as ``prev``.

    ``prev`` is the more recent entry already counted, or ``None`` when ``cur``
    is the newest entry. The newest entry starts a run only if it has not
    expired; an older one joins it if it ended no more than the expiration
    window before ``prev`` started.
    """
    if prev is None:
        return not cur.expired(now)
    gap = prev.started - cur.updated_at(now)
    return gap <= EXPIRATION_WINDOW.total_seconds()


def active_duration(
    conn: sqlite3.Connection,
    now: Optional[float] = None,
    lookback: int = ACTIVE_RUN_LOOKBACK,
) -> timedelta:
    """Total time of the continuous run that ends with the newest entry.

    Only the newest ``lookback`` entries are examined, so a longer run is
    undercounted.
    """
    now_ts = timestamp(now)
    total = timedelta(0)
    prev: Optional[Activity] = None
    with closing(iter_recent(conn, lookback)) as rows:
        for row in rows:
            cur = Activity.from_row(row)
            if not continues_active_run(prev, cur, now_ts):
                break
            if prev is None:
                total += cur.elapsed(now_ts)
            else:
                # Older entries are closed whatever their flag says.
                total += timedelta(seconds=cur.duration)
            prev = cur
    return total


def daily_totals(conn: sqlite3.Connection, day: date) -> list[DailyTotal]:
    """Per-name totals for a local calendar day, longest first."""
    return [
        DailyTotal(name=row["name"], duration=timedelta(seconds=row["duration"]))
        for row in fetch_daily_totals(conn, day)
    ]


def build_report(
    conn: sqlite3.Connection,
    now: Optional[float] = None,
    day: Optional[date] = None,
) -> Report:
    now_ts = timestamp(now)
    duration = active_duration(conn, now_ts)
    if duration == timedelta(0):
        since = latest(conn).time_since(now_ts)
        title = f"Inactive for {format_duration(since)}"
    else:
        title = f"Active for {format_duration(duration)}"

    target = day or datetime.fromtimestamp(now_ts).date()
    return Report(title=title, body=render_totals(daily_totals(conn, target)))


def render_totals(totals: Iterable[DailyTotal]) -> str:
    totals = list(totals)
    if not totals:
        return ""
    width = max([len("Total")] + [len(item.name) for item in totals])
    lines = [f"{item.name:<{width}}  {format_duration(item.duration)}" for item in totals]
    if len(totals) > 1:
        grand_total = sum((item.duration for item in totals), timedelta(0))
        lines.append(f"{'-' * width}  -----")
        lines.append(f"{'Total':<{width}}  {format_duration(grand_total)}")
    return "\n".join(lines)
