"""ByteRange and signature extraction from signed PDFs."""

from __future__ import annotations

__all__ = [
    "BYTERANGE_PATTERN",
    "EmbeddedSignature",
    "SIG_DICT_PATTERN",
    "extract_cms_from_byterange",
    "extract_embedded_signature",
]

import logging
import re
from dataclasses import dataclass

from ...errors import PDFError
from .asn1 import extract_der_from_padded_hex
from .byterange import ByteRangeSpec, ReservedSpan

_logger = logging.getLogger(__name__)

# Regex pattern to find ByteRange arrays in PDF
BYTERANGE_PATTERN = rb"/ByteRange\s*\[\s*(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s*\]"

# Markers of a signature dictionary, used when its /ByteRange no longer parses
SIG_DICT_PATTERN = rb"/Type\s*/Sig\b|/SubFilter\s*/adbe\.pkcs7\.detached|/ByteRange\b"


@dataclass(frozen=True)
class EmbeddedSignature:
    """The most recent signature of a document.

    ``cms_der`` is empty when /Contents still holds only zero padding.
    """

    byte_range: ByteRangeSpec
    contents: ReservedSpan
    cms_der: bytes

    @property
    def is_empty(self) -> bool:
        return not self.cms_der


def _contents_span(pdf_bytes: bytes, spec: ByteRangeSpec) -> ReservedSpan:
    # The gap holds exactly "<" + hex + ">"
    if spec.gap_end > len(pdf_bytes):
        raise PDFError(f"ByteRange offset2 ({spec.gap_end}) exceeds PDF size ({len(pdf_bytes)})")
    lt, gt = spec.gap_start, spec.gap_end - 1
    if pdf_bytes[lt : lt + 1] != b"<":
        raise PDFError(f"Expected '<' at offset {lt}, got {pdf_bytes[lt : lt + 1]!r}")
    if pdf_bytes[gt : gt + 1] != b">":
        raise PDFError(f"Expected '>' at offset {gt}, got {pdf_bytes[gt : gt + 1]!r}")
    return ReservedSpan(lt + 1, gt - lt - 1)


def extract_cms_from_byterange(pdf_bytes: bytes, spec: ByteRangeSpec) -> bytes:
    """Extract the DER signature from the gap described by *spec*.

    Returns ``b""`` when the reservation is still all zeros.

    Raises:
        PDFError: If the gap is not a hex string or the DER is malformed.
    """
    span = _contents_span(pdf_bytes, spec)
    try:
        hex_str = pdf_bytes[span.offset : span.end].decode("ascii").strip()
    except UnicodeDecodeError as e:
        raise PDFError(f"Non-ASCII data in Contents: {e}") from e

    if not hex_str.strip("0"):
        return b""
    try:
        return extract_der_from_padded_hex(hex_str)
    except ValueError as e:
        raise PDFError(f"Invalid hex in CMS blob: {e}") from e


def extract_embedded_signature(pdf_bytes: bytes) -> EmbeddedSignature | None:
    """Find the last /ByteRange of *pdf_bytes* and extract what it points at.

    Returns:
        The signature, or None when the document has no signature dictionary.

    Raises:
        PDFError: If a signature dictionary is present but its /ByteRange
            does not parse, the ByteRange is inconsistent, or /Contents
            is corrupt.
    """
    matches = list(re.finditer(BYTERANGE_PATTERN, pdf_bytes))
    if not matches:
        if re.search(SIG_DICT_PATTERN, pdf_bytes):
            raise PDFError("Signature dictionary found but its /ByteRange is missing or malformed")
        return None
    if len(matches) > 1:
        _logger.debug("%d ByteRange arrays found; using the last one", len(matches))

    m = matches[-1]
    spec = ByteRangeSpec.from_array(
        (int(m.group(1)), int(m.group(2)), int(m.group(3)), int(m.group(4)))
    )
    cms_der = extract_cms_from_byterange(pdf_bytes, spec)
    return EmbeddedSignature(
        byte_range=spec,
        contents=_contents_span(pdf_bytes, spec),
        cms_der=cms_der,
    )
