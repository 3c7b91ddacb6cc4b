"""Activity lifecycle: start, update, finish and reject.

The log is append-only apart from its newest entry. "Current activity" is not
stored separately: it is the newest entry when that entry carries the current
flag and has not expired. Every operation below reads the newest entry and
writes inside a single transaction so that a concurrent writer either sees the
whole change or fails on the store constraints.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import timedelta
from typing import Optional

from .db import delete_activity, fetch_latest, insert_activity, transaction, update_activity
from .errors import AlreadyTracking, NoCurrentActivity, ValidationError
from .models import Activity, timestamp

logger = logging.getLogger(__name__)


def latest(conn: sqlite3.Connection) -> Activity:
    """Return the newest entry, or an empty activity when nothing is tracked."""
    row = fetch_latest(conn)
    if row is None:
        return Activity()
    return Activity.from_row(row)


def start(
    conn: sqlite3.Connection,
    name: str,
    shift: timedelta = timedelta(0),
    now: Optional[float] = None,
) -> Activity:
    """Close the current activity and open a new one.

    ``shift`` backdates the start; the new entry is credited with that much
    duration right away. Raises ``AlreadyTracking`` if the same activity is
    already active.
    """
    name = _clean_name(name)
    if shift < timedelta(0):
        raise ValidationError("shift cannot be negative")
    now_ts = timestamp(now)
    shift_seconds = int(shift.total_seconds())

    with transaction(conn):
        activity = latest(conn)
        if activity.active(now_ts) and activity.name == name:
            raise AlreadyTracking(name)
        _update_latest(conn, activity, name=None, finish=True, now=now_ts)
        started = now_ts - shift_seconds
        activity_id = insert_activity(conn, name, started, shift_seconds)

    logger.debug("Started %r (shift %ss).", name, shift_seconds)
    return Activity(
        id=activity_id,
        name=name,
        started=started,
        duration=shift_seconds,
        current=True,
    )


def update_if_exists(
    conn: sqlite3.Connection,
    name: Optional[str] = None,
    finish: bool = False,
    now: Optional[float] = None,
) -> bool:
    """Refresh the duration of the current activity, if there is one.

    An expired entry loses its current flag here. Returns whether an active
    entry was updated.
    """
    now_ts = timestamp(now)
    with transaction(conn):
        activity = latest(conn)
        return _update_latest(conn, activity, name=name, finish=finish, now=now_ts)


def update(
    conn: sqlite3.Connection,
    name: Optional[str] = None,
    finish: bool = False,
    now: Optional[float] = None,
) -> None:
    if not update_if_exists(conn, name=name, finish=finish, now=now):
        raise NoCurrentActivity()


def finish(conn: sqlite3.Connection, now: Optional[float] = None) -> None:
    update(conn, finish=True, now=now)


def reject(conn: sqlite3.Connection, now: Optional[float] = None) -> bool:
    """Delete the current activity. Returns whether a row was removed."""
    with transaction(conn):
        activity = latest(conn)
        if not activity.active(now):
            return False
        removed = delete_activity(conn, activity.id)
    logger.debug("Rejected %r.", activity.name)
    return removed == 1


def _update_latest(
    conn: sqlite3.Connection,
    activity: Activity,
    *,
    name: Optional[str],
    finish: bool,
    now: int,
) -> bool:
    if activity.is_empty:
        return False
    if activity.expired(now):
        if activity.current:
            update_activity(conn, activity.id, current=False)
            logger.debug("Closed expired activity %r.", activity.name)
        return False
    if not activity.active(now):
        return False

    new_name = (name or "").strip() or activity.name
    changes: dict[str, object] = {"name": new_name, "duration": now - activity.started}
    if finish:
        changes["current"] = False
    changed = update_activity(conn, activity.id, **changes)
    logger.debug(
        "Updated %r: duration=%ss finished=%s",
        new_name,
        changes["duration"],
        finish,
    )
    return changed != 0


def _clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("activity name cannot be empty")
    return name
