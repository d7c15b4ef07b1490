"""
Loading configured key material from disk.

The core never touches the filesystem; these helpers read the files named
by the configuration and hand the bytes to :mod:`pdfseal.core.keys`.
"""

from __future__ import annotations

__all__ = [
    "load_signing_key",
    "load_trust_anchor",
]

import logging
from pathlib import Path

from ..core.keys import KeyMaterial, TrustAnchor, load_pkcs12
from ..core.keys import load_trust_anchor as parse_trust_anchor
from ..errors import CertificateError, ConfigError
from .config import get_signing_config, get_trust_config
from .credentials import get_passphrase

_logger = logging.getLogger(__name__)


def _read(path: str, what: str) -> bytes:
    try:
        return Path(path).expanduser().read_bytes()
    except OSError as e:
        raise ConfigError(f"Cannot read {what} {path}: {e}") from e


def load_signing_key(
    pkcs12_path: str | None = None,
    passphrase: str | None = None,
) -> KeyMaterial:
    """
    Load the signing key from a PKCS#12 bundle.

    Args:
        pkcs12_path: Bundle path (default: configured path).
        passphrase: Bundle passphrase (default: env var, keyring, config).

    Raises:
        ConfigError: If no bundle is configured or it cannot be read.
        CertificateError: If the bundle cannot be decrypted or parsed.
    """
    path = pkcs12_path or get_signing_config()
    if not path:
        raise ConfigError("No signing key configured. Run `pdfseal setup --p12 PATH` first.")
    if passphrase is None:
        passphrase = get_passphrase(path)
    key = load_pkcs12(_read(path, "PKCS#12 bundle"), passphrase)
    _logger.info("Loaded signing key %s (%s)", path, key.signer_name or "no CN")
    return key


def load_trust_anchor(certificate_path: str | None = None) -> TrustAnchor | None:
    """
    Load the certificate or public key signatures are verified against.

    Falls back to the certificate of the configured PKCS#12 bundle.

    Returns:
        The trust anchor, or None when nothing is configured.

    Raises:
        ConfigError: If a configured file cannot be read.
        CertificateError: If its contents cannot be parsed.
    """
    path = certificate_path or get_trust_config()
    if path:
        anchor = parse_trust_anchor(_read(path, "trusted certificate"))
        _logger.info("Loaded trust anchor %s", path)
        return anchor

    if get_signing_config():
        try:
            return TrustAnchor.from_certificate(load_signing_key().certificate)
        except (ConfigError, CertificateError) as e:
            _logger.warning("No trust anchor: signing key unusable: %s", e)
    return None
