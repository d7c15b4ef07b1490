"""High-level convenience API for PDF signing and verification.

Provides :func:`sign` and :func:`verify` that resolve key material and
signature defaults from the saved configuration automatically.

For lower-level control, use :func:`~pdfseal.core.signing.sign_pdf` and
:func:`~pdfseal.core.verification.verify_pdf` directly with explicitly
loaded :class:`~pdfseal.core.keys.KeyMaterial` and
:class:`~pdfseal.core.keys.TrustAnchor`.
"""

from __future__ import annotations

__all__ = ["sign", "verify"]

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .config import get_signature_defaults, load_signing_key, load_trust_anchor
from .constants import DEFAULT_DIGEST_ALGORITHM
from .core.signing import sign_pdf
from .core.verification import verify_pdf

if TYPE_CHECKING:
    from .core.engine import VerificationResult
    from .core.keys import KeyMaterial, TrustAnchor
    from .core.pdf import SignatureMetadata

_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Private resolution helpers
# ---------------------------------------------------------------------------


def _resolve_metadata(
    metadata: SignatureMetadata | None,
    overrides: dict[str, object],
) -> SignatureMetadata:
    """Start from *metadata* (or the saved defaults) and apply non-None overrides."""
    base = metadata if metadata is not None else get_signature_defaults()
    fields = {k: v for k, v in overrides.items() if v is not None}
    return replace(base, **fields) if fields else base


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def sign(
    pdf_bytes: bytes,
    *,
    key: KeyMaterial | None = None,
    metadata: SignatureMetadata | None = None,
    reason: str | None = None,
    contact_info: str | None = None,
    name: str | None = None,
    location: str | None = None,
    visible: bool | None = None,
    position: str | None = None,
    max_signature_bytes: int | None = None,
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
) -> bytes:
    """Sign a PDF with an embedded signature.

    When *key* is not given, the PKCS#12 bundle from ``pdfseal setup``
    (or ``PDFSEAL_P12`` / ``PDFSEAL_P12_PASS``) is loaded.  Signature
    fields not passed explicitly come from *metadata* or the saved
    defaults.

    Returns:
        Complete PDF with embedded signature.

    Raises:
        ConfigError: If no signing key is configured.
        CertificateError: If the key cannot be loaded.
        PDFError: If the input is not a valid PDF or the signature does
            not fit.
        SigningError: If signing fails.
    """
    resolved_key = key if key is not None else load_signing_key()
    meta = _resolve_metadata(
        metadata,
        {
            "reason": reason,
            "contact_info": contact_info,
            "name": name,
            "location": location,
            "visible": visible,
            "position": position,
            "max_signature_bytes": max_signature_bytes,
        },
    )
    return sign_pdf(pdf_bytes, resolved_key, meta, digest_algorithm=digest_algorithm)


def verify(
    pdf_bytes: bytes,
    *,
    trusted: TrustAnchor | None = None,
) -> VerificationResult:
    """Verify the embedded signature of a PDF.

    When *trusted* is not given, the configured certificate (or the
    certificate of the configured signing key) is used.  Without any
    trust anchor the result is at best UNTRUSTED_CERTIFICATE.

    Raises:
        MalformedDocument: If the input is not a PDF.
        ConfigError: If a configured certificate cannot be read.
    """
    anchor = trusted if trusted is not None else load_trust_anchor()
    if anchor is None:
        _logger.warning("No trusted certificate configured")
    return verify_pdf(pdf_bytes, anchor)
