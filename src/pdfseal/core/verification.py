"""
Embedded PDF signature verification.

Finds the last signature of a document, rebuilds its ByteRange digest,
and checks the CMS blob with :func:`~pdfseal.core.engine.verify_signature`.
"""

from __future__ import annotations

__all__ = [
    "VerificationState",
    "verify_pdf",
]

import enum
import logging
from typing import TYPE_CHECKING

from ..constants import DEFAULT_DIGEST_ALGORITHM, PDF_MAGIC, SUPPORTED_DIGESTS
from ..errors import MalformedDocument, PDFError
from .cms_info import extract_digest_algorithm
from .engine import VerificationReason, VerificationResult, make_result, verify_signature
from .pdf import compute_digest, extract_embedded_signature

if TYPE_CHECKING:
    from .keys import TrustAnchor

_logger = logging.getLogger(__name__)

# SHA-1 signatures from older producers are still checked
_VERIFY_DIGESTS = ("sha1", *SUPPORTED_DIGESTS)


class VerificationState(str, enum.Enum):
    LOADED = "loaded"
    SIGNATURE_EXTRACTED = "signature_extracted"
    RANGE_RECOVERED = "range_recovered"
    DIGESTED = "digested"
    VERIFIED = "verified"
    DONE = "done"


def verify_pdf(pdf_bytes: bytes, trusted: TrustAnchor | None) -> VerificationResult:
    """Verify the last embedded signature of a PDF.

    Args:
        pdf_bytes: Signed PDF file content.
        trusted: Certificate or public key the signature must verify
            under.  With None the signature is still checked, but the
            result is UNTRUSTED_CERTIFICATE.

    Returns:
        A :class:`~pdfseal.core.engine.VerificationResult`.  Only
        ``reason == NONE`` is a valid signature.

    Raises:
        MalformedDocument: If *pdf_bytes* is not a PDF at all.
    """
    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
        raise MalformedDocument("Input does not appear to be a PDF file.")

    state = VerificationState.LOADED
    _logger.debug("State: %s (%d bytes)", state.value, len(pdf_bytes))

    try:
        embedded = extract_embedded_signature(pdf_bytes)
    except PDFError as e:
        _logger.debug("Unusable ByteRange: %s", e)
        return make_result(VerificationReason.DIGEST_MISMATCH, [f"ByteRange is inconsistent: {e}"])
    if embedded is None:
        return make_result(
            VerificationReason.NO_SIGNATURE_PRESENT, ["No signature dictionary found in PDF"]
        )
    if embedded.is_empty:
        return make_result(
            VerificationReason.NO_SIGNATURE_PRESENT, ["Signature /Contents is empty"]
        )
    state = VerificationState.SIGNATURE_EXTRACTED
    _logger.debug("State: %s (%d-byte CMS)", state.value, len(embedded.cms_der))

    spec = embedded.byte_range
    details = [f"ByteRange: {list(spec.as_array())}"]
    if spec.end != len(pdf_bytes):
        # Bytes after the signed region were appended later
        details.append(
            f"ByteRange ends at {spec.end} but the file is {len(pdf_bytes)} bytes; "
            "the document was modified after signing"
        )
        return make_result(VerificationReason.DIGEST_MISMATCH, details)
    state = VerificationState.RANGE_RECOVERED
    _logger.debug("State: %s %s", state.value, spec.as_array())

    algorithm = extract_digest_algorithm(embedded.cms_der) or DEFAULT_DIGEST_ALGORITHM
    if algorithm not in _VERIFY_DIGESTS:
        details.append(f"Unsupported digest algorithm {algorithm}; using sha256")
        algorithm = DEFAULT_DIGEST_ALGORITHM
    digest = compute_digest(pdf_bytes, spec, algorithm)
    state = VerificationState.DIGESTED
    _logger.debug("State: %s %s=%s", state.value, algorithm, digest.hex())

    result = verify_signature(digest, embedded.cms_der, trusted)
    state = VerificationState.VERIFIED
    result["details"] = details + result["details"]
    _logger.debug("State: %s reason=%s", state.value, result["reason"].value)

    state = VerificationState.DONE
    _logger.info(
        "Verification %s (%s): %s",
        state.value,
        "passed" if result["valid"] else "failed",
        result["reason"].value,
    )
    return result
