"""
PKCS#12 passphrase storage for pdfseal.

The passphrase is kept in the system keychain (keyring) under the path of
the bundle it unlocks, falling back to the config file when no keyring
backend is usable.
"""

from __future__ import annotations

__all__ = [
    "clear_passphrase",
    "get_passphrase",
    "get_passphrase_storage_info",
    "is_keyring_available",
    "save_passphrase",
]

import logging
import os

import keyring
from keyring.errors import KeyringError

from ..constants import ENV_P12_PASS
from ._storage import CONFIG_FILE, load_config, load_raw_config, save_config

_logger = logging.getLogger(__name__)

# Keyring service name for passphrase storage
_KEYRING_SERVICE = "pdfseal"

# Keyring backends that can never store anything; tests patch this to False
_keyring_available = True


def _keyring_ready() -> bool:
    """Return True when a keyring backend other than the fail/null ones is active."""
    if not _keyring_available:
        return False
    try:
        backend = keyring.get_keyring()
    except (KeyringError, OSError, RuntimeError) as e:
        _logger.debug("No keyring backend: %s", e)
        return False
    return type(backend).__module__ not in ("keyring.backends.fail", "keyring.backends.null")


def _keyring_delete(pkcs12_path: str) -> None:
    """Delete the keyring entry for *pkcs12_path* (best-effort)."""
    if not pkcs12_path or not _keyring_ready():
        return
    try:
        keyring.delete_password(_KEYRING_SERVICE, pkcs12_path)
        _logger.debug("Deleted keyring entry")
    except KeyringError:
        pass  # no entry
    except (OSError, RuntimeError) as e:
        _logger.debug("Keyring delete failed: %s", e)


def is_keyring_available() -> bool:
    """Check if secure keyring storage is available."""
    return _keyring_ready()


def get_passphrase_storage_info() -> str:
    """Return a human-readable description of where the passphrase is stored."""
    if _keyring_ready():
        backend = keyring.get_keyring()
        module = type(backend).__module__ or ""
        if "macOS" in module:
            return "macOS Keychain"
        if "Windows" in module:
            return "Windows Credential Manager"
        if "SecretService" in module:
            return "Linux Secret Service"
        if "kwallet" in module.lower():
            return "KDE Wallet"
        return f"System keychain ({type(backend).__name__})"
    return f"{CONFIG_FILE} (plaintext)"


def get_passphrase(pkcs12_path: str | None) -> str | None:
    """
    Resolve the passphrase for a PKCS#12 bundle.

    Priority: ``PDFSEAL_P12_PASS`` > keyring entry for *pkcs12_path* >
    config file.

    Returns:
        The passphrase, or None if none is stored anywhere.
    """
    env_pass = os.environ.get(ENV_P12_PASS)
    if env_pass is not None:
        _logger.debug("get_passphrase: from env")
        return env_pass

    if pkcs12_path and _keyring_ready():
        try:
            passphrase = keyring.get_password(_KEYRING_SERVICE, pkcs12_path)
        except KeyringError as e:
            # Locked keychain, access denied
            _logger.debug("Keyring read failed, trying config file: %s", e)
        except (OSError, RuntimeError) as e:
            _logger.debug("Keyring backend error, trying config file: %s", e)
        else:
            if passphrase is not None:
                _logger.debug("get_passphrase: from keyring")
                return passphrase

    passphrase = load_config().get("pkcs12_password")
    if passphrase is not None:
        _logger.debug("get_passphrase: from config file (plaintext)")
    return passphrase


def save_passphrase(pkcs12_path: str, passphrase: str) -> bool:
    """
    Store the passphrase for *pkcs12_path*.

    A keyring entry for a previously configured bundle is removed.

    Returns:
        True if stored in the system keychain, False if it fell back to
        the config file (plaintext, chmod 600).
    """
    config = load_raw_config()
    old_path = config.get("pkcs12_path")
    if isinstance(old_path, str) and old_path != pkcs12_path:
        _keyring_delete(old_path)

    config["pkcs12_path"] = pkcs12_path

    if _keyring_ready():
        try:
            keyring.set_password(_KEYRING_SERVICE, pkcs12_path, passphrase)
        except KeyringError as e:
            _logger.warning("Keyring save failed, using config file: %s", e)
        except (OSError, RuntimeError) as e:
            _logger.warning("Keyring backend error, using config file: %s", e)
        else:
            config.pop("pkcs12_password", None)
            save_config(config)
            return True
    else:
        _logger.warning(
            "No usable keyring backend. Passphrase will be saved in plaintext (%s).",
            CONFIG_FILE,
        )

    config["pkcs12_password"] = passphrase
    save_config(config)
    return False


def clear_passphrase() -> None:
    """Remove the stored passphrase from all storage backends."""
    config = load_raw_config()
    path = config.get("pkcs12_path")
    _logger.info(
        "Clearing passphrase: in_config=%s, keyring=%s",
        "pkcs12_password" in config,
        _keyring_ready(),
    )
    if isinstance(path, str):
        _keyring_delete(path)
    if config.pop("pkcs12_password", None) is not None:
        save_config(config)
