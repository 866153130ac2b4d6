"""Resolve where the activity database lives."""

from __future__ import annotations

import os
from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "ActivityTracker"
DB_FILENAME = "activity-tracker.sqlite3"
DB_PATH_ENV = "ACTIVITY_TRACKER_DB"


def get_data_dir() -> Path:
    """Per-user data directory, created on first use."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=False, roaming=True)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    """``$ACTIVITY_TRACKER_DB`` when set, otherwise a file in the data directory."""
    override = os.environ.get(DB_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_data_dir() / DB_FILENAME
