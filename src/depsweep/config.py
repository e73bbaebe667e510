"""User configuration for depsweep."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

log = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 20
DEFAULT_THRESHOLD = 50
DEFAULT_GIT_SEARCH_DEPTH = 5

CONFIG_DIR = Path(os.path.expanduser("~/.depsweep"))
CONFIG_FILE = CONFIG_DIR / "config.json"


class Settings(BaseModel):
    """Tunable limits for a depsweep run."""

    max_workers: int = Field(
        DEFAULT_MAX_WORKERS,
        ge=1,
        description="Folders sized, scored or deleted at the same time",
    )
    threshold: int = Field(
        DEFAULT_THRESHOLD,
        ge=0,
        le=100,
        description="Minimum safety score for prune to delete a folder",
    )
    git_search_depth: int = Field(
        DEFAULT_GIT_SEARCH_DEPTH,
        ge=0,
        description="Parent directories searched for a .git entry",
    )
    command_timeout: Optional[float] = Field(
        None,
        gt=0,
        description="Seconds before git or an install command is abandoned (None waits forever)",
    )
    health_timeout: Optional[float] = Field(
        None,
        gt=0,
        description="Seconds before a health check command is abandoned (None waits forever)",
    )


def load_settings(path: Path | None = None) -> Settings:
    """
    Load settings from a JSON file.

    A missing file gives the defaults. An unreadable or invalid file is
    reported and the defaults are used instead.

    Args:
        path: Config file to read (default: ~/.depsweep/config.json)

    Returns:
        Settings instance
    """
    config_file = path or CONFIG_FILE
    if not config_file.exists():
        return Settings()

    try:
        with open(config_file) as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        log.warning("Could not load settings from %s: %s", config_file, e)
        return Settings()

    if not isinstance(data, dict):
        log.warning("Ignoring %s: expected a JSON object", config_file)
        return Settings()

    try:
        return Settings(**data)
    except ValidationError as e:
        log.warning("Invalid settings in %s: %s", config_file, e)
        return Settings()
