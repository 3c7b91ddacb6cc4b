from datetime import date, datetime

import pytest

from conftest import NOW, count_rows
from timefor.db import (
    delete_activity,
    fetch_daily_totals,
    fetch_latest,
    fetch_names,
    fetch_recent,
    initialize_schema,
    initialize_views,
    insert_activity,
    iter_recent,
    open_database,
    transaction,
    update_activity,
)
from timefor.errors import OrderingViolation, StorageError, UniquenessViolation


def test_schema_initialization_keeps_rows(conn):
    insert_activity(conn, "test", NOW)
    initialize_schema(conn)
    initialize_views(conn)
    assert count_rows(conn) == 1


def test_second_current_entry_is_rejected(conn):
    insert_activity(conn, "test", NOW)
    with pytest.raises(UniquenessViolation, match="log.current"):
        insert_activity(conn, "other", NOW + 10)
    assert count_rows(conn) == 1


def test_duplicate_started_is_rejected(conn, add_entry):
    add_entry("test", NOW)
    with pytest.raises(UniquenessViolation, match="log.started"):
        insert_activity(conn, "test", NOW)


def test_insert_before_previous_end_is_rejected(conn, add_entry):
    add_entry("a", NOW, 100)
    with pytest.raises(OrderingViolation):
        insert_activity(conn, "b", NOW + 50)
    assert count_rows(conn) == 1


def test_insert_at_previous_end_is_accepted(conn, add_entry):
    add_entry("a", NOW, 100)
    insert_activity(conn, "b", NOW + 100)
    assert fetch_latest(conn)["name"] == "b"


def test_increasing_inserts_are_accepted(conn, add_entry):
    for offset in range(0, 600, 60):
        add_entry(f"task {offset}", NOW + offset, 30)
    assert count_rows(conn) == 10


def test_current_flag_is_stored_as_null_when_cleared(conn):
    activity_id = insert_activity(conn, "a", NOW)
    assert fetch_latest(conn)["current"] == 1
    assert update_activity(conn, activity_id, current=False) == 1
    assert fetch_latest(conn)["current"] is None


def test_update_without_fields_changes_nothing(conn):
    activity_id = insert_activity(conn, "a", NOW)
    assert update_activity(conn, activity_id) == 0
    assert update_activity(conn, activity_id + 1, duration=5) == 0


def test_delete_activity(conn):
    activity_id = insert_activity(conn, "a", NOW)
    assert delete_activity(conn, activity_id) == 1
    assert delete_activity(conn, activity_id) == 0
    assert fetch_latest(conn) is None


def test_recent_entries_are_newest_first_and_restartable(conn, add_entry):
    add_entry("a", NOW, 10)
    add_entry("b", NOW + 20, 10)
    add_entry("c", NOW + 40, 10)

    assert [row["name"] for row in iter_recent(conn, 2)] == ["c", "b"]
    assert [row["name"] for row in iter_recent(conn, 10)] == ["c", "b", "a"]
    assert [row["name"] for row in fetch_recent(conn, 1)] == ["c"]


def test_names_are_distinct_and_most_recent_first(conn, add_entry):
    add_entry("mail", NOW, 10)
    add_entry("code", NOW + 20, 10)
    add_entry("mail", NOW + 40, 10)
    add_entry("read", NOW + 60, 10)

    assert fetch_names(conn) == ["read", "mail", "code"]


def test_daily_totals_group_by_local_day_and_name(conn, add_entry):
    morning = int(datetime(2026, 10, 18, 9, 0).timestamp())
    add_entry("code", morning - 86400, 3600)
    add_entry("code", morning, 600)
    add_entry("mail", morning + 600, 300)
    add_entry("code", morning + 1200, 120)

    rows = fetch_daily_totals(conn, date(2026, 10, 18))

    assert [(row["name"], row["duration"]) for row in rows] == [
        ("code", 720),
        ("mail", 300),
    ]


def test_transaction_rolls_back_on_error(conn):
    with pytest.raises(RuntimeError):
        with transaction(conn):
            insert_activity(conn, "a", NOW)
            raise RuntimeError("boom")
    assert count_rows(conn) == 0
    assert not conn.in_transaction


def test_nested_transaction_joins_outer(conn):
    with transaction(conn):
        with transaction(conn):
            insert_activity(conn, "a", NOW)
        assert conn.in_transaction
    assert not conn.in_transaction
    assert count_rows(conn) == 1


def test_open_database_in_missing_directory_fails(tmp_path):
    with pytest.raises(StorageError, match="cannot open database"):
        open_database(tmp_path / "missing" / "timefor.db")
