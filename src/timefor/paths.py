"""Helpers for locating the log store and application directories."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "timefor"
APP_AUTHOR = "timefor"

DB_ENV_VAR = "TIMEFOR_DB"
DEFAULT_DB_NAME = ".timefor.db"


def get_data_dir() -> Path:
    """Return the base directory for auxiliary files such as logs."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    """Return the store location, honouring the ``TIMEFOR_DB`` override."""
    override = os.environ.get(DB_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / DEFAULT_DB_NAME


def get_log_path() -> Path:
    return get_data_dir() / "daemon.log"
