from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigNotFoundError, ConfigParseError
from .models import AwsshConfig

logger = logging.getLogger(__name__)

APP_DIRNAME = "awssh"
SYSTEM_CONFIG_DIR = Path("/etc")
CONFIG_FILENAMES = ("config.json", "config.yaml", "config.yml")


def config_dirs(environ: Mapping[str, str] | None = None) -> list[Path]:
    """Return the awssh configuration directories, lowest priority first.

    ``XDG_CONFIG_DIRS`` entries come first in the order listed, then the
    per-user directory, then the system-wide ``/etc`` which is always appended
    and so overrides everything before it.
    """
    env = os.environ if environ is None else environ

    bases = [Path(entry) for entry in env.get("XDG_CONFIG_DIRS", "").split(":") if entry]

    config_home = env.get("XDG_CONFIG_HOME", "")
    if config_home:
        bases.append(Path(config_home))
    else:
        home = env.get("HOME", "")
        bases.append(Path(home) / ".config" if home else Path("~/.config").expanduser())

    bases.append(SYSTEM_CONFIG_DIR)
    return [base / APP_DIRNAME for base in bases]


def load_config_file(directory: str | Path) -> AwsshConfig | None:
    """Parse the first config file found in ``directory``, or return None."""
    directory = Path(directory)
    for filename in CONFIG_FILENAMES:
        path = directory / filename
        if path.is_file():
            return _parse_config_file(path)
    return None


def load_config(dirs: Sequence[Path]) -> AwsshConfig:
    config = AwsshConfig()
    loaded = False

    for directory in dirs:
        found = load_config_file(directory)
        if found is None:
            logger.debug("No config file in %s", directory)
            continue
        logger.debug("Loaded config from %s", directory)
        config = config.merge(found)
        loaded = True

    if not loaded:
        raise ConfigNotFoundError(dirs)
    return config


def _parse_config_file(path: Path) -> AwsshConfig:
    try:
        with path.open("r", encoding="utf-8") as handle:
            if path.suffix == ".json":
                loaded = json.load(handle)
            else:
                loaded = yaml.safe_load(handle)
    except json.JSONDecodeError as error:
        raise ConfigParseError(path, str(error)) from error
    except yaml.YAMLError as error:
        raise ConfigParseError(path, str(error)) from error
    except OSError as error:
        raise ConfigParseError(path, error.strerror or str(error)) from error

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigParseError(path, "top level must be an object")

    return AwsshConfig(
        columns=_coerce_columns(path, _safe_mapping_get(loaded, "columns")),
        default_region=_coerce_string(path, loaded, "default-aws-region"),
        default_profile=_coerce_string(path, loaded, "default-aws-profile"),
        disable_host_key_check=_coerce_optional_bool(path, loaded, "disable-host-key-check"),
    )


def _coerce_columns(path: Path, value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigParseError(path, "'columns' must be a list of strings")
    return tuple(value)


def _coerce_string(path: Path, mapping: Mapping[str, Any], key: str) -> str:
    value = _safe_mapping_get(mapping, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigParseError(path, f"'{key}' must be a string")
    return value


def _coerce_optional_bool(path: Path, mapping: Mapping[str, Any], key: str) -> bool | None:
    value = _safe_mapping_get(mapping, key)
    if value is None or isinstance(value, bool):
        return value
    raise ConfigParseError(path, f"'{key}' must be true or false")


def _safe_mapping_get(mapping: Any, key: str, fallback: Any = None) -> Any:
    try:
        return mapping[key]
    except (KeyError, TypeError):
        return fallback
