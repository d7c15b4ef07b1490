"""
Low-level config file I/O for pdfseal.

Handles reading, writing, and validating the on-disk config.json.
Used by both config.py and credentials.py as their shared storage layer.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "ConfigDict",
    "load_config",
    "load_raw_config",
    "save_config",
]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, TypedDict, cast

from ..constants import MAX_PORT, MAX_SIGNATURE_BYTES, MIN_PORT, MIN_SIGNATURE_BYTES

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".pdfseal"
CONFIG_FILE = CONFIG_DIR / "config.json"


class ConfigDict(TypedDict, total=False):
    """Type definition for the config file structure."""

    pkcs12_path: str
    pkcs12_password: str  # only when no keyring backend is usable
    certificate_path: str
    name: str
    reason: str
    contact_info: str
    location: str
    host: str
    port: int
    max_signature_bytes: int


_STR_KEYS = (
    "pkcs12_path",
    "pkcs12_password",
    "certificate_path",
    "name",
    "reason",
    "contact_info",
    "location",
    "host",
)

# key -> (min, max)
_INT_KEYS: dict[str, tuple[int, int]] = {
    "port": (MIN_PORT, MAX_PORT),
    "max_signature_bytes": (MIN_SIGNATURE_BYTES, MAX_SIGNATURE_BYTES),
}


def load_raw_config() -> dict[str, object]:
    """Load raw config dict from disk, preserving all keys.

    Used for merge-and-save operations so that keys written by a newer
    version survive a save.
    """
    try:
        data: Any = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
        _logger.warning("Config file is not a JSON object, ignoring")
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def _validate_config_dict(data: dict[str, object]) -> ConfigDict:
    """Pick known keys with correct types; out-of-range ints are dropped."""
    result: dict[str, object] = {}
    for key in _STR_KEYS:
        val = data.get(key)
        if isinstance(val, str):
            result[key] = val
        elif val is not None:
            _logger.warning("Config %s must be a string, ignoring", key)
    for key, (low, high) in _INT_KEYS.items():
        val = data.get(key)
        if val is None:
            continue
        # bool is an int subclass; reject it explicitly
        if not isinstance(val, int) or isinstance(val, bool):
            _logger.warning("Config %s must be an integer, ignoring", key)
        elif low <= val <= high:
            result[key] = val
        else:
            _logger.warning("Config %s=%d out of range [%d, %d], ignoring", key, val, low, high)
    return cast("ConfigDict", result)


def load_config() -> ConfigDict:
    """Load config from disk, returning only known typed keys."""
    return _validate_config_dict(load_raw_config())


def save_config(config: dict[str, object]) -> None:
    """Save config to disk with restricted permissions (0600).

    Uses atomic write (temp file + rename) so an interrupted write never
    leaves a truncated file behind.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=0o700)
    if os.name != "nt":
        try:
            CONFIG_DIR.chmod(0o700)
        except OSError:
            _logger.warning("Failed to set restrictive permissions on %s", CONFIG_DIR)
    content = json.dumps(config, indent=2, ensure_ascii=False) + "\n"
    # Write through the fd directly so the file never exists with wider permissions
    fd, tmp_path = tempfile.mkstemp(dir=CONFIG_DIR, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        fd = -1
        if os.name != "nt":
            try:
                tmp.chmod(0o600)
            except OSError:
                _logger.exception(
                    "Failed to set restrictive permissions on %s. "
                    "Config file may be readable by other users.",
                    tmp,
                )
        tmp.replace(CONFIG_FILE)
    except BaseException:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise
    _logger.debug("Saved config: %s", sorted(config))
