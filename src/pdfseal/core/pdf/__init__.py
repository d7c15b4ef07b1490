"""PDF placeholder injection, ByteRange handling, and signature embedding."""

from .byterange import ByteRangeSpec, ReservedSpan, compute_digest, locate_byte_range
from .document import PdfDocument, load_document
from .embed import embed_signature, patch_byte_range
from .extraction import BYTERANGE_PATTERN, EmbeddedSignature, extract_embedded_signature
from .objects import pdf_string
from .placeholder import (
    SignatureMetadata,
    SignaturePlaceholder,
    find_placeholder,
    insert_placeholder,
    serialize_with_placeholder,
)
from .position import POSITION_ALIASES, POSITION_PRESETS, resolve_position

__all__ = [
    "BYTERANGE_PATTERN",
    "POSITION_ALIASES",
    "POSITION_PRESETS",
    "ByteRangeSpec",
    "EmbeddedSignature",
    "PdfDocument",
    "ReservedSpan",
    "SignatureMetadata",
    "SignaturePlaceholder",
    "compute_digest",
    "embed_signature",
    "extract_embedded_signature",
    "find_placeholder",
    "insert_placeholder",
    "load_document",
    "locate_byte_range",
    "patch_byte_range",
    "pdf_string",
    "resolve_position",
    "serialize_with_placeholder",
]
