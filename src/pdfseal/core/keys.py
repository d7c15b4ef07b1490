"""Signing key material and trust anchors.

Parsing only: callers read the bytes (from disk, an upload, a secret
store) and hand them in.  Both types are immutable so a single instance
can be shared by every request of a long-running server.
"""

from __future__ import annotations

__all__ = [
    "KeyMaterial",
    "TrustAnchor",
    "load_pem_key_pair",
    "load_pkcs12",
    "load_trust_anchor",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from ..errors import CertificateError

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PublicKeyTypes

_logger = logging.getLogger(__name__)

SigningKey = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey


def _common_name(cert: x509.Certificate) -> str | None:
    attrs = cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if not attrs:
        return None
    value = attrs[0].value
    return value if isinstance(value, str) else value.decode("utf-8", errors="replace")


def _public_der(key: PublicKeyTypes) -> bytes:
    return key.public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
    )


@dataclass(frozen=True)
class KeyMaterial:
    """A private key, its certificate, and any intermediate certificates."""

    private_key: SigningKey
    certificate: x509.Certificate
    chain: tuple[x509.Certificate, ...] = ()

    def __post_init__(self) -> None:
        _require_signing_key(self.private_key)
        if _public_der(self.private_key.public_key()) != _public_der(
            self.certificate.public_key()
        ):
            raise CertificateError("Private key does not match the certificate public key.")

    @property
    def signer_name(self) -> str | None:
        """Common name of the signing certificate."""
        return _common_name(self.certificate)


@dataclass(frozen=True)
class TrustAnchor:
    """Public key signatures are checked against.

    ``certificate`` is None when only a bare public key was supplied; the
    validity-period check is then skipped.
    """

    public_key: PublicKeyTypes
    certificate: x509.Certificate | None = None

    @classmethod
    def from_certificate(cls, cert: x509.Certificate) -> TrustAnchor:
        return cls(public_key=cert.public_key(), certificate=cert)

    @property
    def subject(self) -> str | None:
        if self.certificate is None:
            return None
        return self.certificate.subject.rfc4514_string()


def _require_signing_key(key: object) -> SigningKey:
    if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise CertificateError(
            f"Unsupported key type {type(key).__name__}; only RSA and ECDSA keys can sign."
        )
    return key


def _to_password(password: str | bytes | None) -> bytes | None:
    if password is None or password in ("", b""):
        return None
    return password.encode("utf-8") if isinstance(password, str) else password


def load_pkcs12(data: bytes, password: str | bytes | None) -> KeyMaterial:
    """Parse a PKCS#12 bundle into :class:`KeyMaterial`.

    Raises:
        CertificateError: On a wrong passphrase, a corrupt bundle, or a
            bundle without a key or certificate.
    """
    try:
        key, cert, extra = pkcs12.load_key_and_certificates(data, _to_password(password))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CertificateError(f"Cannot read PKCS#12 bundle (wrong passphrase?): {e}") from e
    if key is None or cert is None:
        raise CertificateError("PKCS#12 bundle must contain a private key and its certificate.")
    _logger.debug(
        "Loaded PKCS#12: subject=%s, %d extra certificate(s)",
        cert.subject.rfc4514_string(),
        len(extra),
    )
    return KeyMaterial(
        private_key=_require_signing_key(key), certificate=cert, chain=tuple(extra)
    )


def load_pem_key_pair(
    key_pem: bytes, cert_pem: bytes, password: str | bytes | None = None
) -> KeyMaterial:
    """Build :class:`KeyMaterial` from a PEM private key and PEM certificate(s).

    The first certificate in *cert_pem* is the signer; any others form the chain.
    """
    try:
        key = serialization.load_pem_private_key(key_pem, _to_password(password))
        certs = x509.load_pem_x509_certificates(cert_pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CertificateError(f"Cannot read PEM key material: {e}") from e
    if not certs:
        raise CertificateError("No certificate found in PEM data.")
    return KeyMaterial(
        private_key=_require_signing_key(key), certificate=certs[0], chain=tuple(certs[1:])
    )


def load_trust_anchor(data: bytes) -> TrustAnchor:
    """Parse a PEM or DER certificate, or a PEM public key.

    Raises:
        CertificateError: If *data* is none of those.
    """
    stripped = data.lstrip()
    try:
        if stripped.startswith(b"-----BEGIN CERTIFICATE-----"):
            return TrustAnchor.from_certificate(x509.load_pem_x509_certificate(stripped))
        if stripped.startswith(b"-----BEGIN PUBLIC KEY-----") or stripped.startswith(
            b"-----BEGIN RSA PUBLIC KEY-----"
        ):
            return TrustAnchor(public_key=serialization.load_pem_public_key(stripped))
        return TrustAnchor.from_certificate(x509.load_der_x509_certificate(data))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CertificateError(f"Cannot read trusted certificate or public key: {e}") from e
