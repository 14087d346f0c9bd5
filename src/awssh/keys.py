from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from .errors import KeySpecError, KeyStoreError
from .models import SshKey

logger = logging.getLogger(__name__)

KEYS_DIRNAME = "keys"
KEY_SUFFIX = ".pem"


def parse_key_spec(spec: str) -> tuple[str, str]:
    """Split ``user@keyname`` into its username and key name."""
    username, separator, key_name = spec.partition("@")
    if not separator:
        raise KeySpecError(spec)
    return username, key_name


def load_keys_from_dir(path: str | Path) -> dict[str, SshKey]:
    path = Path(path)
    try:
        entries = sorted(path.iterdir())
    except FileNotFoundError:
        return {}
    except OSError as error:
        raise KeyStoreError(f"Cannot read key directory {path}: {error.strerror or error}") from error

    keys: dict[str, SshKey] = {}
    for entry in entries:
        if not entry.name.endswith(KEY_SUFFIX) or not entry.is_file():
            continue
        username, key_name = parse_key_spec(entry.name[: -len(KEY_SUFFIX)])
        keys[key_name] = SshKey(username=username, path=entry)
    return keys


def load_keys(dirs: Sequence[Path]) -> dict[str, SshKey]:
    """Collect keys from the ``keys`` subdirectory of every config dir; later dirs win."""
    keys: dict[str, SshKey] = {}
    for directory in dirs:
        found = load_keys_from_dir(directory / KEYS_DIRNAME)
        if found:
            logger.debug("Loaded %d key(s) from %s", len(found), directory / KEYS_DIRNAME)
        keys.update(found)
    return keys
