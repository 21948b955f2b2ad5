"""XDG-compliant path resolution for Second Brain data storage."""

import os
from pathlib import Path

from platformdirs import user_data_dir


def get_data_dir() -> Path:
    """Return the data directory, honouring SECONDBRAIN_DATA_DIR."""
    override = os.environ.get("SECONDBRAIN_DATA_DIR")
    path = Path(override) if override else Path(user_data_dir("secondbrain"))
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_db_path() -> Path:
    """Return the path to the Oxigraph persistent store directory."""
    path = get_data_dir() / "oxigraph"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_path() -> Path:
    """Return the default YAML config file location (may not exist)."""
    return get_data_dir() / "config.yaml"
