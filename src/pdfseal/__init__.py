"""
pdfseal -- embedded PKCS#7 signatures for PDF documents.

Signs PDFs with an incremental update (signature field, ByteRange,
detached CMS blob) and verifies them against a trusted certificate.
"""

from __future__ import annotations

from .api import sign, verify
from .constants import __version__
from .core.engine import VerificationReason, VerificationResult, sign_digest, verify_signature
from .core.keys import KeyMaterial, TrustAnchor, load_pem_key_pair, load_pkcs12, load_trust_anchor
from .core.pdf import POSITION_PRESETS, SignatureMetadata, resolve_position
from .core.signing import sign_pdf
from .core.verification import verify_pdf
from .errors import (
    CertificateError,
    ConfigError,
    MalformedDocument,
    PDFError,
    PlaceholderNotFound,
    SealError,
    SignatureTooLarge,
    SigningError,
)

__all__ = [
    "POSITION_PRESETS",
    "CertificateError",
    "ConfigError",
    "KeyMaterial",
    "MalformedDocument",
    "PDFError",
    "PlaceholderNotFound",
    "SealError",
    "SignatureMetadata",
    "SignatureTooLarge",
    "SigningError",
    "TrustAnchor",
    "VerificationReason",
    "VerificationResult",
    "__version__",
    "load_pem_key_pair",
    "load_pkcs12",
    "load_trust_anchor",
    "resolve_position",
    "sign",
    "sign_digest",
    "sign_pdf",
    "verify",
    "verify_pdf",
    "verify_signature",
]
