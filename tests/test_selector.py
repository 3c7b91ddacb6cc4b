import pytest

from conftest import NOW
from timefor.errors import SelectionFailed
from timefor.selector import select_name


def test_selection_returns_chosen_line(conn, add_entry):
    add_entry("mail", NOW, 10)
    add_entry("code", NOW + 20, 10)
    assert select_name(conn, command=("head", "-n", "1")) == "code"


def test_menu_receives_names_newest_first(conn, add_entry, tmp_path):
    add_entry("mail", NOW, 10)
    add_entry("code", NOW + 20, 10)
    add_entry("mail", NOW + 40, 10)
    received = tmp_path / "menu-input"

    select_name(conn, command=("sh", "-c", f"cat > {received}"))

    assert received.read_text() == "mail\ncode\n"


def test_menu_runs_without_candidates(conn):
    assert select_name(conn, command=("sh", "-c", "cat; echo fresh")) == "fresh"


def test_menu_failure(conn):
    with pytest.raises(SelectionFailed, match="exit status 1"):
        select_name(conn, command=("false",))


def test_missing_menu_program(conn):
    with pytest.raises(SelectionFailed, match="cannot run"):
        select_name(conn, command=("timefor-no-such-menu",))
