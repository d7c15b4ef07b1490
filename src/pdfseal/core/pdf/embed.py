"""In-place patching of a prepared PDF.

Both functions are pure: they take the prepared bytes plus the patch
instructions and return new bytes of exactly the same length.
"""

from __future__ import annotations

__all__ = [
    "embed_signature",
    "patch_byte_range",
    "render_byte_range",
]

import logging
import re

from ...errors import PDFError, PlaceholderNotFound, SignatureTooLarge
from .byterange import ByteRangeSpec, ReservedSpan
from .placeholder import SignaturePlaceholder

_logger = logging.getLogger(__name__)

# A ByteRange array of four right-aligned 10-character fields
_FIXED_BYTERANGE = re.compile(rb"/ByteRange \[[ \d]{10} [ \d]{10} [ \d]{10} [ \d]{10}\]")


def render_byte_range(spec: ByteRangeSpec) -> bytes:
    """Render the /ByteRange array with fixed-width fields."""
    a, b, c, d = spec.as_array()
    return f"/ByteRange [{a:>10d} {b:>10d} {c:>10d} {d:>10d}]".encode("latin-1")


def patch_byte_range(
    pdf_bytes: bytes, placeholder: SignaturePlaceholder, spec: ByteRangeSpec
) -> bytes:
    """Write the values of *spec* over the ByteRange sentinel.

    Rewriting identical values is a no-op, so the patch may be applied
    more than once.

    Raises:
        PlaceholderNotFound: If the sentinel is not at the recorded offset
            or the values do not fit its fixed width.
    """
    start = placeholder.byte_range_offset
    end = start + placeholder.byte_range_length
    if not _FIXED_BYTERANGE.fullmatch(pdf_bytes, start, end):
        raise PlaceholderNotFound(f"No fixed-width ByteRange array at offset {start}.")

    value = render_byte_range(spec)
    if len(value) != placeholder.byte_range_length:
        raise PlaceholderNotFound(
            f"ByteRange {spec.as_array()} does not fit the "
            f"{placeholder.byte_range_length}-byte placeholder."
        )

    result = bytearray(pdf_bytes)
    result[start:end] = value
    return bytes(result)


def _write_contents(pdf_bytes: bytes, reserved: ReservedSpan, blob: bytes) -> bytes:
    blob_hex = blob.hex()
    if len(blob_hex) > reserved.length:
        raise SignatureTooLarge(
            f"Signature too large: {len(blob_hex)} hex chars > {reserved.length} reserved",
            required=len(blob_hex),
            reserved=reserved.length,
        )
    padded = blob_hex + "0" * (reserved.length - len(blob_hex))

    result = bytearray(pdf_bytes)
    result[reserved.offset : reserved.end] = padded.encode("ascii")
    return bytes(result)


def embed_signature(
    pdf_bytes: bytes,
    placeholder: SignaturePlaceholder,
    spec: ByteRangeSpec,
    blob: bytes,
) -> bytes:
    """Write *blob* as zero-padded hex into /Contents and finalize the ByteRange.

    Raises:
        SignatureTooLarge: If the hex-encoded blob exceeds the reservation.
        PlaceholderNotFound: If the ByteRange sentinel cannot be patched.
    """
    reserved = placeholder.contents
    if spec.gap_start != reserved.offset - 1 or spec.gap_end != reserved.end + 1:
        raise PDFError(
            f"ByteRange {spec.as_array()} does not match the reserved span "
            f"at {reserved.offset} (+{reserved.length})"
        )

    signed = _write_contents(pdf_bytes, reserved, blob)
    signed = patch_byte_range(signed, placeholder, spec)

    if len(signed) != len(pdf_bytes):
        raise PDFError(f"Embedding changed the file size: {len(pdf_bytes)} -> {len(signed)}")
    _logger.debug(
        "Embedded %d-byte signature (%d of %d hex chars used)",
        len(blob),
        len(blob) * 2,
        reserved.length,
    )
    return signed
