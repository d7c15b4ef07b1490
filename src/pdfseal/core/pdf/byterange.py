"""ByteRange location and digest computation.

The signed region of a PDF is the whole file except the hex digits of
/Contents and their ``<`` ``>`` delimiters.  It is described by two spans,
``[0, gap_start)`` and ``[gap_end, end)``, written into the signature
dictionary as ``[0 gap_start gap_end end-gap_end]``.
"""

from __future__ import annotations

__all__ = [
    "ByteRangeSpec",
    "ReservedSpan",
    "compute_digest",
    "locate_byte_range",
]

import hashlib
import logging
from dataclasses import dataclass

from ...constants import DEFAULT_DIGEST_ALGORITHM
from ...errors import PDFError, PlaceholderNotFound, SigningError

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservedSpan:
    """Position of the /Contents hex digits (first digit after ``<``)."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        """Offset of the closing ``>``."""
        return self.offset + self.length


@dataclass(frozen=True)
class ByteRangeSpec:
    """The two signed spans of a document."""

    gap_start: int
    gap_end: int
    end: int

    @property
    def first(self) -> tuple[int, int]:
        """(offset, length) of the span before the signature."""
        return 0, self.gap_start

    @property
    def second(self) -> tuple[int, int]:
        """(offset, length) of the span after the signature."""
        return self.gap_end, self.end - self.gap_end

    @property
    def covered(self) -> int:
        """Number of bytes fed to the digest."""
        return self.gap_start + (self.end - self.gap_end)

    def as_array(self) -> tuple[int, int, int, int]:
        """The four integers of the PDF /ByteRange array."""
        return 0, self.gap_start, self.gap_end, self.end - self.gap_end

    @classmethod
    def from_array(cls, values: tuple[int, int, int, int]) -> ByteRangeSpec:
        """Build a spec from a /ByteRange array read from a file.

        Raises:
            PDFError: If the array does not describe two ordered spans
                starting at offset 0.
        """
        off1, len1, off2, len2 = values
        if off1 != 0:
            raise PDFError(f"ByteRange offset1 should be 0, got {off1}")
        if len1 <= 0:
            raise PDFError(f"ByteRange len1 must be positive, got {len1}")
        if off2 <= len1:
            raise PDFError(f"ByteRange offset2 ({off2}) <= len1 ({len1})")
        if len2 < 0:
            raise PDFError(f"ByteRange len2 must not be negative, got {len2}")
        return cls(gap_start=len1, gap_end=off2, end=off2 + len2)


def locate_byte_range(pdf_bytes: bytes, reserved: ReservedSpan) -> ByteRangeSpec:
    """Compute the ByteRange that excludes *reserved* and its delimiters.

    Raises:
        PlaceholderNotFound: If ``<`` and ``>`` are not right around the
            reserved span.
    """
    if reserved.offset <= 0 or reserved.length <= 0 or reserved.end >= len(pdf_bytes):
        raise PlaceholderNotFound(
            f"Reserved span out of bounds: offset={reserved.offset}, "
            f"length={reserved.length}, pdf_size={len(pdf_bytes)}"
        )
    if pdf_bytes[reserved.offset - 1 : reserved.offset] != b"<":
        raise PlaceholderNotFound("Malformed Contents field: expected '<' before hex data")
    if pdf_bytes[reserved.end : reserved.end + 1] != b">":
        raise PlaceholderNotFound("Malformed Contents field: expected '>' after hex data")

    spec = ByteRangeSpec(
        gap_start=reserved.offset - 1,
        gap_end=reserved.end + 1,
        end=len(pdf_bytes),
    )
    _logger.debug("ByteRange %s covers %d of %d bytes", spec.as_array(), spec.covered, spec.end)
    return spec


def compute_digest(
    pdf_bytes: bytes,
    spec: ByteRangeSpec,
    algorithm: str = DEFAULT_DIGEST_ALGORITHM,
) -> bytes:
    """Hash the two signed spans of *pdf_bytes*, in file order.

    Raises:
        PDFError: If the spans reach past the end of the data.
        SigningError: If *algorithm* is not a known hash.
    """
    if spec.end > len(pdf_bytes):
        raise PDFError(f"ByteRange extends beyond EOF: {spec.end} > {len(pdf_bytes)}")
    try:
        h = hashlib.new(algorithm)
    except ValueError as e:
        raise SigningError(f"Unsupported digest algorithm: {algorithm}") from e

    view = memoryview(pdf_bytes)
    off1, len1 = spec.first
    off2, len2 = spec.second
    h.update(view[off1 : off1 + len1])
    h.update(view[off2 : off2 + len2])
    return h.digest()
