"""Tool settings: client binaries, restore parallelism and file names.

Resolution order (later wins):
    1. Built-in defaults
    2. ``pgrepl.yaml`` in the working directory, or the file named by
       ``PGREPL_CONFIG``
    3. ``PGREPL_<FIELD>`` environment variables (e.g. ``PGREPL_RESTORE_JOBS=8``)

Example ``pgrepl.yaml``::

    pg_dump: /usr/lib/postgresql/16/bin/pg_dump
    restore_jobs: 8
    report_file: replication_commands.txt
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, cast

import yaml

SETTINGS_FILE = "pgrepl.yaml"
CONFIG_ENV_VAR = "PGREPL_CONFIG"
ENV_PREFIX = "PGREPL_"

_INT_FIELDS = frozenset({"restore_jobs", "connect_timeout"})


@dataclass(frozen=True)
class ToolSettings:
    """Resolved settings for one invocation."""

    pg_dump: str = "pg_dump"
    pg_restore: str = "pg_restore"
    pg_isready: str = "pg_isready"
    restore_jobs: int = 4
    connect_timeout: int = 10
    report_file: str = "replication_commands.txt"
    openapi_diff_image: str = "openapitools/openapi-diff:latest"
    specs_dir: str = "specs"

    @property
    def client_binaries(self) -> list[str]:
        return [self.pg_dump, self.pg_restore, self.pg_isready]


def _coerce(name: str, value: object) -> str | int:
    if name in _INT_FIELDS:
        try:
            number = int(str(value))
        except ValueError:
            raise ValueError(
                f"Setting '{name}' must be an integer, got {value!r}",
            ) from None
        if number < 1:
            raise ValueError(f"Setting '{name}' must be >= 1, got {number}")
        return number
    text = str(value).strip()
    if not text:
        raise ValueError(f"Setting '{name}' must not be empty")
    return text


def _read_settings_file(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    return cast(dict[str, Any], raw)


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ToolSettings:
    """Resolve settings from defaults, the YAML file and the environment.

    Args:
        config_path: Explicit settings file. Defaults to ``PGREPL_CONFIG`` or
            ``./pgrepl.yaml`` when present.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Frozen ToolSettings.

    Raises:
        ValueError: Unknown keys or invalid values.
        FileNotFoundError: ``config_path``/``PGREPL_CONFIG`` points nowhere.
    """
    env = os.environ if environ is None else environ
    known = {f.name for f in fields(ToolSettings)}
    overrides: dict[str, str | int] = {}

    if config_path is None and env.get(CONFIG_ENV_VAR):
        config_path = Path(env[CONFIG_ENV_VAR])
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")
    if config_path is None and Path(SETTINGS_FILE).exists():
        config_path = Path(SETTINGS_FILE)

    if config_path is not None:
        for key, value in _read_settings_file(config_path).items():
            if key not in known:
                raise ValueError(f"{config_path}: unknown setting '{key}'")
            overrides[key] = _coerce(key, value)

    for name in sorted(known):
        env_key = ENV_PREFIX + name.upper()
        if env_key in env:
            overrides[name] = _coerce(name, env[env_key])

    return replace(ToolSettings(), **overrides)
