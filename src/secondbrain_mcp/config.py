"""
Configuration for the Second Brain server.

Values come from, in order of priority:
1. Environment variables (SECONDBRAIN_*)
2. YAML config file (SECONDBRAIN_CONFIG, or config.yaml in the data dir)
3. Defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from .paths import get_config_path


@dataclass
class AppConfig:
    """Application settings."""
    log_level: str = "INFO"
    db_path: str | None = None  # None → platformdirs data dir
    weekly_days: int = 7
    monthly_days: int = 30
    context_chars: int = 100
    transport: str = "stdio"


_ENV_PREFIX = "SECONDBRAIN_"


def _read_yaml(path: Path) -> dict:
    if not path.is_file():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: str | Path | None = None, environ: dict | None = None) -> AppConfig:
    """Load configuration from YAML and environment with defaults."""
    env = os.environ if environ is None else environ
    config_path = Path(path or env.get(f"{_ENV_PREFIX}CONFIG") or get_config_path())
    raw = _read_yaml(config_path)

    values: dict = {}
    for f in fields(AppConfig):
        value = env.get(f"{_ENV_PREFIX}{f.name.upper()}", raw.get(f.name))
        if value is None:
            continue
        if f.type == "int":
            value = int(value)
        else:
            value = str(value)
        values[f.name] = value
    return AppConfig(**values)
