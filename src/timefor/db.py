"""SQLite log store for activity entries."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator, Optional, Union

from .errors import OrderingViolation, StorageError, UniquenessViolation


logger = logging.getLogger(__name__)

DATE_FMT = "%Y-%m-%d"

_UNSET = object()


def open_database(path: Union[Path, str]) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    try:
        conn = sqlite3.connect(path, isolation_level=None)
    except sqlite3.Error as exc:
        raise StorageError(f"cannot open database {path}: {exc}") from exc
    conn.row_factory = sqlite3.Row
    try:
        initialize_schema(conn)
    except sqlite3.Error as exc:
        conn.close()
        raise StorageError(f"cannot open database {path}: {exc}") from exc
    return conn


@contextmanager
def database_connection(path: Union[Path, str]) -> Iterator[sqlite3.Connection]:
    conn = open_database(path)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the block as one write transaction; joins an already open one."""
    if conn.in_transaction:
        yield conn
        return
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def initialize_schema(conn: sqlite3.Connection) -> None:
    # ``current`` is either 1 or NULL, and UNIQUE, so at most one row is open.
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS log (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            started INTEGER UNIQUE NOT NULL,
            duration INTEGER NOT NULL DEFAULT 0,
            current INTEGER UNIQUE DEFAULT 1 CHECK (current IN (1))
        );

        CREATE TRIGGER IF NOT EXISTS on_insert_started INSERT ON log
        FOR EACH ROW
        BEGIN
            SELECT RAISE(ABORT, 'started must be latest')
            WHERE NEW.started < (SELECT MAX(started + duration) FROM log);
        END;
        """
    )
    exists = conn.execute(
        "SELECT count(*) FROM sqlite_master WHERE type = 'view' AND name = 'log_daily'"
    ).fetchone()[0]
    if not exists:
        initialize_views(conn)


def initialize_views(conn: sqlite3.Connection) -> None:
    """(Re)create the read-only projections used for inspection and reports."""
    conn.executescript(
        """
        DROP VIEW IF EXISTS latest;
        CREATE VIEW latest AS
        SELECT *
        FROM log
        ORDER BY started DESC
        LIMIT 1;

        DROP VIEW IF EXISTS log_pretty;
        CREATE VIEW log_pretty AS
        SELECT
            id,
            name,
            date(started, 'unixepoch', 'localtime') started_date,
            time(started, 'unixepoch', 'localtime') started_time,
            duration,
            time(duration, 'unixepoch') duration_pretty,
            current,
            datetime(started + duration, 'unixepoch', 'localtime') updated
        FROM log;

        DROP VIEW IF EXISTS log_daily;
        CREATE VIEW log_daily AS
        SELECT
            started_date AS date,
            name,
            time(SUM(duration), 'unixepoch') duration_pretty,
            SUM(duration) duration
        FROM log_pretty
        GROUP BY started_date, name;

        DROP VIEW IF EXISTS current;
        """
    )
    logger.debug("Database views initialized.")


def insert_activity(
    conn: sqlite3.Connection, name: str, started: int, duration: int = 0
) -> int:
    """Append a new current entry and return its id."""
    try:
        cur = conn.execute(
            "INSERT INTO log (name, started, duration) VALUES (?, ?, ?)",
            (name, started, duration),
        )
    except sqlite3.IntegrityError as exc:
        raise _translate_integrity_error(exc) from exc
    return int(cur.lastrowid)


def fetch_latest(conn: sqlite3.Connection) -> Optional[sqlite3.Row]:
    return conn.execute("SELECT * FROM latest").fetchone()


def update_activity(
    conn: sqlite3.Connection,
    activity_id: int,
    *,
    name: Optional[str] = None,
    duration: Optional[int] = None,
    current: object = _UNSET,
) -> int:
    """Update a single entry and return the number of changed rows.

    ``current`` accepts ``True`` to mark the entry open and ``False`` to clear
    the flag.
    """
    fields: list[str] = []
    params: list[object] = []

    if name is not None:
        fields.append("name = ?")
        params.append(name)
    if duration is not None:
        fields.append("duration = ?")
        params.append(duration)
    if current is not _UNSET:
        fields.append("current = ?")
        params.append(1 if current else None)

    if not fields:
        return 0

    params.append(activity_id)
    try:
        cur = conn.execute(
            f"UPDATE log SET {', '.join(fields)} WHERE id = ?",
            params,
        )
    except sqlite3.IntegrityError as exc:
        raise _translate_integrity_error(exc) from exc
    return cur.rowcount


def delete_activity(conn: sqlite3.Connection, activity_id: int) -> int:
    cur = conn.execute("DELETE FROM log WHERE id = ?", (activity_id,))
    return cur.rowcount


def iter_recent(conn: sqlite3.Connection, limit: int) -> Iterator[sqlite3.Row]:
    """Yield up to ``limit`` entries, newest first.

    Every call runs a fresh query, so the sequence can be walked again.
    """
    cur = conn.execute(
        "SELECT * FROM log ORDER BY started DESC LIMIT ?",
        (limit,),
    )
    try:
        yield from cur
    finally:
        cur.close()


def fetch_recent(conn: sqlite3.Connection, limit: int) -> list[sqlite3.Row]:
    return list(iter_recent(conn, limit))


def fetch_names(conn: sqlite3.Connection) -> list[str]:
    """Distinct activity names, most recently used first."""
    rows = conn.execute(
        """
        SELECT name
        FROM log
        GROUP BY name
        ORDER BY MAX(started) DESC;
        """
    )
    return [row["name"] for row in rows]


def fetch_daily_totals(conn: sqlite3.Connection, day: date) -> list[sqlite3.Row]:
    """Return total seconds per activity name for a local calendar day."""
    return list(
        conn.execute(
            """
            SELECT name, duration
            FROM log_daily
            WHERE date = ?
            ORDER BY duration DESC, name;
            """,
            (day.strftime(DATE_FMT),),
        )
    )


def _translate_integrity_error(exc: sqlite3.IntegrityError) -> StorageError:
    message = str(exc)
    if "started must be latest" in message:
        return OrderingViolation(message)
    if "UNIQUE constraint failed" in message:
        return UniquenessViolation(message)
    return StorageError(message)
