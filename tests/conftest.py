import sqlite3
from typing import Callable

import pytest

from timefor.db import database_connection, insert_activity, update_activity

# 2023-11-14 22:13:20 UTC
NOW = 1_700_000_000


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "timefor.db"


@pytest.fixture
def conn(db_path):
    with database_connection(db_path) as conn:
        yield conn


@pytest.fixture
def add_entry(conn) -> Callable[..., int]:
    """Insert an entry directly; closed unless ``current=True``."""

    def _add(name: str, started: int, duration: int = 0, current: bool = False) -> int:
        activity_id = insert_activity(conn, name, started, duration)
        if not current:
            update_activity(conn, activity_id, current=False)
        return activity_id

    return _add


def count_rows(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT count(*) FROM log").fetchone()[0]
