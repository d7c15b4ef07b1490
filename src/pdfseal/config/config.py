"""
Configuration management for pdfseal.

Stores the key file locations, signature defaults, and server settings in
~/.pdfseal/config.json.  Environment variables override the file.

Passphrase storage lives in ``credentials.py``.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "get_server_config",
    "get_signature_defaults",
    "get_signing_config",
    "get_trust_config",
    "reset_all",
    "save_signature_defaults",
    "save_signing_config",
]

import logging
import os

from ..constants import (
    CMS_RESERVED_SIZE,
    DEFAULT_CONTACT_INFO,
    DEFAULT_HOST,
    DEFAULT_LOCATION,
    DEFAULT_PORT,
    DEFAULT_REASON,
    ENV_CERT,
    ENV_HOST,
    ENV_NAME,
    ENV_P12,
    ENV_PORT,
    MAX_PORT,
    MIN_PORT,
)
from ..core.pdf import SignatureMetadata
from ._storage import CONFIG_DIR, CONFIG_FILE, load_config, load_raw_config, save_config

_logger = logging.getLogger(__name__)


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


# ── Key locations ────────────────────────────────────────────────────


def get_signing_config() -> str | None:
    """
    Path of the PKCS#12 bundle used for signing.

    Priority: ``PDFSEAL_P12`` > config file.
    """
    return _env(ENV_P12) or load_config().get("pkcs12_path") or None


def get_trust_config() -> str | None:
    """
    Path of the trusted certificate (or public key) used for verification.

    Priority: ``PDFSEAL_CERT`` > config file.  When neither is set but a
    PKCS#12 bundle is configured, verification falls back to its
    certificate (see :mod:`pdfseal.config.keystore`).
    """
    return _env(ENV_CERT) or load_config().get("certificate_path") or None


def save_signing_config(
    pkcs12_path: str | None = None,
    certificate_path: str | None = None,
) -> None:
    """Save key file locations.  ``None`` leaves a value unchanged."""
    config = load_raw_config()
    if pkcs12_path is not None:
        config["pkcs12_path"] = pkcs12_path
    if certificate_path is not None:
        config["certificate_path"] = certificate_path
    save_config(config)


# ── Signature defaults ───────────────────────────────────────────────


def get_signature_defaults() -> SignatureMetadata:
    """
    Signature dictionary fields from config.

    The signer name comes from ``PDFSEAL_NAME`` or the config file; when
    both are empty the signing certificate's common name is used later.
    """
    config = load_config()
    return SignatureMetadata(
        reason=config.get("reason", DEFAULT_REASON),
        contact_info=config.get("contact_info", DEFAULT_CONTACT_INFO),
        name=_env(ENV_NAME) or config.get("name", ""),
        location=config.get("location", DEFAULT_LOCATION),
        max_signature_bytes=config.get("max_signature_bytes", CMS_RESERVED_SIZE),
    )


def save_signature_defaults(
    name: str | None = None,
    reason: str | None = None,
    contact_info: str | None = None,
    location: str | None = None,
    max_signature_bytes: int | None = None,
) -> None:
    """Save signature defaults.  ``None`` leaves a value unchanged."""
    config = load_raw_config()
    updates: dict[str, object | None] = {
        "name": name,
        "reason": reason,
        "contact_info": contact_info,
        "location": location,
        "max_signature_bytes": max_signature_bytes,
    }
    for key, value in updates.items():
        if value is not None:
            config[key] = value
    save_config(config)


# ── Server config ────────────────────────────────────────────────────


def get_server_config() -> tuple[str, int]:
    """
    Resolve the HTTP server bind address.

    Priority: env vars > config file > defaults.

    Returns:
        (host, port)
    """
    config = load_config()
    host = _env(ENV_HOST) or config.get("host", DEFAULT_HOST)

    port = config.get("port", DEFAULT_PORT)
    port_str = _env(ENV_PORT)
    if port_str:
        try:
            env_port = int(port_str)
        except ValueError:
            _logger.warning("Invalid %s value %r, using %d", ENV_PORT, port_str, port)
        else:
            if MIN_PORT <= env_port <= MAX_PORT:
                port = env_port
            else:
                _logger.warning(
                    "%s=%d out of range [%d, %d], using %d",
                    ENV_PORT,
                    env_port,
                    MIN_PORT,
                    MAX_PORT,
                    port,
                )
    return host, port


# ── Reset ────────────────────────────────────────────────────────────


def reset_all() -> None:
    """Clear all config: stored passphrase, key locations, and defaults."""
    from .credentials import clear_passphrase

    clear_passphrase()
    save_config({})
    _logger.info("Configuration reset: %s", CONFIG_FILE)

