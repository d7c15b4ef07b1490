"""Signature placeholder injection.

Adds an empty signature field to the last page of a document: a signature
dictionary with a zero-filled /Contents reservation and a sentinel
/ByteRange, the widget annotation that holds it, an optional visible
appearance, and the page and catalog overrides that register the field.
The layout produced by :func:`serialize_with_placeholder` is final; only
same-width byte patches may follow.
"""

from __future__ import annotations

__all__ = [
    "SignatureMetadata",
    "SignaturePlaceholder",
    "find_placeholder",
    "insert_placeholder",
    "serialize_with_placeholder",
]

import logging
from dataclasses import dataclass
from datetime import datetime

from ...constants import (
    CMS_RESERVED_SIZE,
    DEFAULT_CONTACT_INFO,
    DEFAULT_LOCATION,
    DEFAULT_POSITION,
    DEFAULT_REASON,
)
from ...errors import MalformedDocument, PDFError, PlaceholderNotFound
from .byterange import ReservedSpan
from .document import PdfDocument
from .objects import BYTERANGE_PLACEHOLDER, build_catalog_override, build_page_override
from .position import compute_sig_rect
from .render import appearance_size, build_annot_widget, build_appearance_xobject, build_sig_dict

_logger = logging.getLogger(__name__)

_CONTENTS_PREFIX = b"/Contents <"


@dataclass(frozen=True)
class SignatureMetadata:
    """Human-readable signature fields and reservation settings.

    Attributes:
        reason: /Reason entry.
        contact_info: /ContactInfo entry.
        name: /Name entry and the name shown in the visible appearance.
        location: /Location entry.
        max_signature_bytes: DER bytes reserved for the signature.
        visible: Draw ``Signed by: <name>`` on the last page.
        position: Appearance preset ("bottom-left", "br", ...).
    """

    reason: str = DEFAULT_REASON
    contact_info: str = DEFAULT_CONTACT_INFO
    name: str = ""
    location: str = DEFAULT_LOCATION
    max_signature_bytes: int = CMS_RESERVED_SIZE
    visible: bool = True
    position: str = DEFAULT_POSITION

    @property
    def hex_size(self) -> int:
        return self.max_signature_bytes * 2

    @property
    def appearance_text(self) -> str:
        return f"Signed by: {self.name}" if self.name else "Digitally signed"


@dataclass(frozen=True)
class SignaturePlaceholder:
    """Where the sentinel ByteRange and the reserved /Contents sit in a file."""

    byte_range_offset: int
    byte_range_length: int
    contents: ReservedSpan


def insert_placeholder(
    doc: PdfDocument, meta: SignatureMetadata, signing_time: datetime
) -> PdfDocument:
    """Add an empty signature field on the last page of *doc*.

    Raises:
        MalformedDocument: If the document has no pages.
        PDFError: If the reservation size is not positive.
    """
    if not doc.pages:
        raise MalformedDocument("Document has no pages.")
    if meta.max_signature_bytes <= 0:
        raise PDFError(f"max_signature_bytes must be positive, got {meta.max_signature_bytes}")

    page = doc.pages[-1]
    sig_ref = doc.allocate()
    annot_ref = doc.allocate()

    doc.put(
        sig_ref,
        build_sig_dict(
            signing_time,
            meta.hex_size,
            reason=meta.reason,
            contact_info=meta.contact_info,
            name=meta.name,
            location=meta.location,
        ),
    )

    if meta.visible:
        text = meta.appearance_text
        box_w, box_h = appearance_size(text)
        rect = compute_sig_rect(page.width, page.height, meta.position, box_w, box_h)
        ap_ref = doc.allocate()
        doc.put(annot_ref, build_annot_widget(annot_ref, sig_ref, page.ref, rect, ap_ref))
        doc.put(ap_ref, build_appearance_xobject(text, box_w, box_h))
    else:
        doc.put(annot_ref, build_annot_widget(annot_ref, sig_ref, page.ref))

    annots = [*page.annots, str(annot_ref)]
    doc.put(page.ref, build_page_override(doc.original, page.ref, annots))
    doc.put(doc.trailer.root, build_catalog_override(doc.original, doc.trailer.root, annot_ref))

    _logger.debug(
        "Placeholder on page %d (obj %s): sig=%s annot=%s visible=%s reserve=%d bytes",
        len(doc.pages),
        page.ref,
        sig_ref,
        annot_ref,
        meta.visible,
        meta.max_signature_bytes,
    )
    return doc


def find_placeholder(pdf_bytes: bytes, hex_size: int, start: int = 0) -> SignaturePlaceholder:
    """Locate the sentinel ByteRange and zeroed /Contents at or after *start*.

    Searching from the start of the update section avoids matching a
    signature already present in the original file.

    Raises:
        PlaceholderNotFound: If either marker is missing.
    """
    contents_marker = _CONTENTS_PREFIX + b"0" * hex_size + b">"
    contents_pos = pdf_bytes.find(contents_marker, start)
    if contents_pos == -1:
        raise PlaceholderNotFound("Cannot find Contents placeholder in prepared PDF.")

    br_pos = pdf_bytes.find(BYTERANGE_PLACEHOLDER, start)
    if br_pos == -1:
        raise PlaceholderNotFound("Cannot find ByteRange placeholder in prepared PDF.")

    return SignaturePlaceholder(
        byte_range_offset=br_pos,
        byte_range_length=len(BYTERANGE_PLACEHOLDER),
        contents=ReservedSpan(contents_pos + len(_CONTENTS_PREFIX), hex_size),
    )


def serialize_with_placeholder(
    doc: PdfDocument, hex_size: int
) -> tuple[bytes, SignaturePlaceholder]:
    """Serialize *doc* and locate its placeholder in the output."""
    prepared = doc.serialize()
    placeholder = find_placeholder(prepared, hex_size, start=len(doc.original))
    _logger.debug(
        "Prepared PDF: %d bytes, Contents hex at %d (+%d)",
        len(prepared),
        placeholder.contents.offset,
        placeholder.contents.length,
    )
    return prepared, placeholder
