"""Pick an activity name through an external menu such as rofi."""

from __future__ import annotations

import logging
import sqlite3
import subprocess
from typing import Sequence

from .db import fetch_names
from .errors import SelectionFailed

logger = logging.getLogger(__name__)

DEFAULT_MENU_COMMAND = ("rofi", "-dmenu")


def select_name(
    conn: sqlite3.Connection,
    command: Sequence[str] = DEFAULT_MENU_COMMAND,
) -> str:
    """Offer known names (most recent first) and return the chosen line."""
    names = fetch_names(conn)
    logger.debug("Offering %d names to %s", len(names), command[0])
    menu_input = "".join(f"{name}\n" for name in names)
    try:
        result = subprocess.run(
            list(command),
            input=menu_input,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise SelectionFailed(f"cannot run {command[0]}: {exc}") from exc
    if result.returncode != 0:
        raise SelectionFailed(
            f"cannot get selection from {command[0]}: exit status {result.returncode}"
        )
    return result.stdout.strip()
