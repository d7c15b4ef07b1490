"""
Configuration, passphrase storage, and key loading.

Import from this package directly instead of the individual submodules.
"""

from __future__ import annotations

from .config import (
    CONFIG_DIR,
    CONFIG_FILE,
    get_server_config,
    get_signature_defaults,
    get_signing_config,
    get_trust_config,
    reset_all,
    save_signature_defaults,
    save_signing_config,
)
from .credentials import (
    clear_passphrase,
    get_passphrase,
    get_passphrase_storage_info,
    is_keyring_available,
    save_passphrase,
)
from .keystore import load_signing_key, load_trust_anchor

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "clear_passphrase",
    "get_passphrase",
    "get_passphrase_storage_info",
    "get_server_config",
    "get_signature_defaults",
    "get_signing_config",
    "get_trust_config",
    "is_keyring_available",
    "load_signing_key",
    "load_trust_anchor",
    "reset_all",
    "save_passphrase",
    "save_signature_defaults",
    "save_signing_config",
]
