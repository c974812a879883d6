"""
Runtime settings: database URL, log level and defaults location.

Precedence (lowest to highest): built-in values, YAML settings file,
environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from sitio_config.loader import DEFAULTS_DIR, load_yaml_file

ENV_DATABASE_URL = "SITIO_DATABASE_URL"
ENV_LOG_LEVEL = "SITIO_LOG_LEVEL"
ENV_SETTINGS_FILE = "SITIO_SETTINGS_FILE"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class KernelSettings:
    """
    Resolved runtime settings.

    ``database_url`` of None selects the in-memory persistence adapter.
    """

    database_url: str | None = None
    log_level: str = "INFO"
    defaults_dir: Path = DEFAULTS_DIR
    echo_sql: bool = False

    def __post_init__(self) -> None:
        level = str(self.log_level).upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")
        object.__setattr__(self, "log_level", level)
        object.__setattr__(self, "defaults_dir", Path(self.defaults_dir))


def parse_settings(data: dict[str, Any]) -> KernelSettings:
    known = {f.name for f in fields(KernelSettings)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown settings key(s): {sorted(unknown)}")
    return KernelSettings(**data)


def load_settings(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> KernelSettings:
    """
    Load settings from an optional YAML file, then apply environment overrides.

    Args:
        path: Settings file.  Falls back to ``$SITIO_SETTINGS_FILE``.
        environ: Environment mapping.  Defaults to ``os.environ``.

    Raises:
        FileNotFoundError: if the settings file does not exist.
        ValueError: on unknown keys or an invalid log level.
    """
    env = os.environ if environ is None else environ
    settings_path = path or env.get(ENV_SETTINGS_FILE)

    settings = KernelSettings()
    if settings_path:
        settings = parse_settings(load_yaml_file(Path(settings_path)))

    overrides: dict[str, Any] = {}
    if env.get(ENV_DATABASE_URL):
        overrides["database_url"] = env[ENV_DATABASE_URL]
    if env.get(ENV_LOG_LEVEL):
        overrides["log_level"] = env[ENV_LOG_LEVEL]
    return replace(settings, **overrides) if overrides else settings
