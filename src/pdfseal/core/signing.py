"""
Embedded PDF signing -- placeholder, ByteRange, digest, CMS, embed.

:func:`sign_pdf` runs the whole pipeline on bytes in memory and returns
the signed document.  The key material is passed in by the caller; this
module never reads configuration or files.
"""

from __future__ import annotations

__all__ = [
    "SigningState",
    "sign_pdf",
]

import enum
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ..constants import DEFAULT_DIGEST_ALGORITHM
from ..errors import SigningError
from .engine import sign_digest, verify_signature
from .keys import TrustAnchor
from .pdf import (
    SignatureMetadata,
    compute_digest,
    embed_signature,
    insert_placeholder,
    load_document,
    locate_byte_range,
    patch_byte_range,
    serialize_with_placeholder,
)

if TYPE_CHECKING:
    from .keys import KeyMaterial

_logger = logging.getLogger(__name__)


class SigningState(str, enum.Enum):
    LOADED = "loaded"
    PLACEHOLDER_INSERTED = "placeholder_inserted"
    RANGE_LOCATED = "range_located"
    DIGESTED = "digested"
    SIGNED = "signed"
    EMBEDDED = "embedded"
    DONE = "done"


def _resolve_metadata(metadata: SignatureMetadata | None, key: KeyMaterial) -> SignatureMetadata:
    if metadata is None:
        metadata = SignatureMetadata()
    if not metadata.name and key.signer_name:
        metadata = replace(metadata, name=key.signer_name)
    return metadata


def sign_pdf(
    pdf_bytes: bytes,
    key: KeyMaterial,
    metadata: SignatureMetadata | None = None,
    *,
    signing_time: datetime | None = None,
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
) -> bytes:
    """
    Sign a PDF with an embedded CMS signature.

    Steps:
    1. Append an incremental update holding an empty signature field
    2. Locate the reserved /Contents span and write the final ByteRange
    3. Hash the two signed spans
    4. Build a detached CMS signature over the hash
    5. Embed the signature in place
    6. Verify the result against the signing certificate

    Args:
        pdf_bytes: Raw PDF file content.
        key: Signing key and certificate.
        metadata: Signature dictionary fields and appearance options.
            When no name is given, the certificate common name is used.
        signing_time: Time recorded in /M and the CMS signingTime
            (default: now, UTC).
        digest_algorithm: "sha256" (default), "sha384" or "sha512".

    Returns:
        The original bytes followed by the signed incremental update.

    Raises:
        MalformedDocument: If the input is not a readable PDF.
        PlaceholderNotFound: If the placeholder cannot be located.
        SignatureTooLarge: If the signature exceeds the reservation.
        SigningError: If signing or the post-sign check fails.
    """
    meta = _resolve_metadata(metadata, key)
    if signing_time is None:
        signing_time = datetime.now(timezone.utc)

    _logger.info(
        "Signing PDF (%s): %d bytes, reserve=%d bytes, digest=%s",
        "visible" if meta.visible else "invisible",
        len(pdf_bytes),
        meta.max_signature_bytes,
        digest_algorithm,
    )

    state = SigningState.LOADED
    try:
        doc = load_document(pdf_bytes)
        _logger.debug("State: %s", state.value)

        insert_placeholder(doc, meta, signing_time)
        prepared, placeholder = serialize_with_placeholder(doc, meta.hex_size)
        state = SigningState.PLACEHOLDER_INSERTED
        _logger.debug("State: %s (%d bytes)", state.value, len(prepared))

        spec = locate_byte_range(prepared, placeholder.contents)
        prepared = patch_byte_range(prepared, placeholder, spec)
        state = SigningState.RANGE_LOCATED
        _logger.debug("State: %s %s", state.value, spec.as_array())

        digest = compute_digest(prepared, spec, digest_algorithm)
        state = SigningState.DIGESTED
        _logger.debug("State: %s %s=%s", state.value, digest_algorithm, digest.hex())

        blob = sign_digest(digest, key, signing_time, digest_algorithm)
        state = SigningState.SIGNED
        _logger.debug("State: %s (%d-byte CMS)", state.value, len(blob))

        signed_pdf = embed_signature(prepared, placeholder, spec, blob)
        state = SigningState.EMBEDDED
        _logger.debug("State: %s", state.value)

        result = verify_signature(
            compute_digest(signed_pdf, spec, digest_algorithm),
            blob,
            TrustAnchor.from_certificate(key.certificate),
        )
        if not result["valid"]:
            detail_str = "\n  ".join(result["details"])
            raise SigningError(
                f"Post-sign verification FAILED ({result['reason'].value}):\n  {detail_str}\n"
                "The signed PDF may be corrupt -- not returned."
            )
    except Exception:
        _logger.error("Signing aborted in state %s", state.value)
        raise

    state = SigningState.DONE
    _logger.info("Signed PDF complete (%s): %d bytes", state.value, len(signed_pdf))
    return signed_pdf
