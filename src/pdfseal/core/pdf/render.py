"""Raw object construction for signature fields.

Builds the bodies of the objects a signature adds to a document: the
signature dictionary, the widget annotation, and the visible appearance
form XObject.  The placeholder injector decides numbering and placement.
"""

from __future__ import annotations

__all__ = [
    "APPEARANCE_FONT_SIZE",
    "APPEARANCE_LINE_HEIGHT",
    "APPEARANCE_OPACITY",
    "appearance_size",
    "build_appearance_xobject",
    "build_annot_widget",
    "build_sig_dict",
    "text_width",
]

from datetime import datetime

from ...constants import __version__
from .objects import ANNOT_FLAGS_SIG_WIDGET, BYTERANGE_PLACEHOLDER, ObjRef, pdf_date, pdf_string

# ── Appearance defaults ──────────────────────────────────────────────

APPEARANCE_FONT_SIZE = 12
APPEARANCE_LINE_HEIGHT = 24
APPEARANCE_OPACITY = 0.75
_APPEARANCE_PADDING = 2

# Helvetica advance widths (1/1000 em) for printable ASCII 0x20..0x7E
_HELVETICA_WIDTHS = (
    278, 278, 355, 556, 556, 889, 667, 191, 333, 333, 389, 584, 278, 333, 278, 278,
    556, 556, 556, 556, 556, 556, 556, 556, 556, 556, 278, 278, 584, 584, 584, 556,
    1015, 667, 667, 722, 722, 667, 611, 778, 722, 278, 500, 667, 556, 833, 722, 778,
    667, 778, 722, 667, 611, 722, 667, 944, 667, 667, 611, 278, 278, 278, 469, 556,
    333, 556, 556, 500, 556, 556, 278, 556, 556, 222, 222, 500, 222, 833, 556, 556,
    556, 556, 333, 500, 278, 556, 500, 722, 500, 500, 500, 334, 260, 334, 584,
)  # fmt: skip
_HELVETICA_DEFAULT_WIDTH = 556


def text_width(text: str, font_size: float) -> float:
    """Width of *text* set in Helvetica at *font_size*, in PDF points."""
    total = 0
    for char in text:
        code = ord(char)
        if 0x20 <= code <= 0x7E:
            total += _HELVETICA_WIDTHS[code - 0x20]
        else:
            total += _HELVETICA_DEFAULT_WIDTH
    return total * font_size / 1000.0


# ── Signature dictionary ─────────────────────────────────────────────


def build_sig_dict(
    signing_time: datetime,
    hex_size: int,
    reason: str = "",
    contact_info: str = "",
    name: str = "",
    location: str = "",
) -> str:
    """Build the /Type /Sig dictionary with a zeroed /Contents reservation.

    Empty text fields are omitted; /M is always present.
    """
    entries = [
        "  /Type /Sig",
        "  /Filter /Adobe.PPKLite",
        "  /SubFilter /adbe.pkcs7.detached",
        f"  {BYTERANGE_PLACEHOLDER.decode('ascii')}",
        f"  /Contents <{'0' * hex_size}>",
        f"  /M ({pdf_date(signing_time)})",
    ]
    for key, value in (
        ("/Reason", reason),
        ("/ContactInfo", contact_info),
        ("/Name", name),
        ("/Location", location),
    ):
        if value:
            entries.append(f"  {key} ({pdf_string(value)})")
    entries.append(f"  /Prop_Build << /App << /Name /pdfseal /REx ({__version__}) >> >>")
    body = "\n".join(entries)
    return f"<<\n{body}\n>>"


# ── Widget annotation ────────────────────────────────────────────────


def build_annot_widget(
    annot_ref: ObjRef,
    sig_ref: ObjRef,
    page_ref: ObjRef,
    rect: tuple[float, float, float, float] | None = None,
    ap_ref: ObjRef | None = None,
) -> str:
    """Build the widget annotation that is also the signature form field.

    Without *rect* the widget is invisible (/Rect [0 0 0 0], no /AP).
    """
    if rect is None:
        rect_entry = "  /Rect [0 0 0 0]"
    else:
        x, y, w, h = rect
        rect_entry = f"  /Rect [{x:.2f} {y:.2f} {x + w:.2f} {y + h:.2f}]"
    entries = [
        "  /Type /Annot",
        "  /Subtype /Widget",
        "  /FT /Sig",
        rect_entry,
        f"  /V {sig_ref}",
        f"  /T (Signature_{annot_ref.num})",
        f"  /F {ANNOT_FLAGS_SIG_WIDGET}",
        f"  /P {page_ref}",
    ]
    if ap_ref is not None:
        entries.append(f"  /AP << /N {ap_ref} >>")
    entries.append("  /Border [0 0 0]")
    body = "\n".join(entries)
    return f"<<\n{body}\n>>"


# ── Appearance stream ────────────────────────────────────────────────


def appearance_size(text: str, font_size: float = APPEARANCE_FONT_SIZE) -> tuple[float, float]:
    """(width, height) of the box needed to show *text* on one line."""
    width = text_width(text, font_size) + 2 * _APPEARANCE_PADDING
    height = max(APPEARANCE_LINE_HEIGHT, font_size * 2)
    return width, height


def build_appearance_xobject(
    text: str,
    width: float,
    height: float,
    font_size: float = APPEARANCE_FONT_SIZE,
    opacity: float = APPEARANCE_OPACITY,
) -> bytes:
    """Build a form XObject drawing *text* in Helvetica at *opacity*."""
    baseline = (height - font_size) / 2.0 + font_size * 0.22
    stream = (
        f"q\n/GS1 gs\nBT\n/F1 {font_size:g} Tf\n0 0 0 rg\n"
        f"{_APPEARANCE_PADDING} {baseline:.2f} Td\n({pdf_string(text)}) Tj\nET\nQ"
    ).encode("latin-1")
    header = (
        f"<< /Type /XObject /Subtype /Form /FormType 1\n"
        f"   /BBox [0 0 {width:.2f} {height:.2f}]\n"
        f"   /Resources << /Font << /F1 << /Type /Font /Subtype /Type1"
        f" /BaseFont /Helvetica /Encoding /WinAnsiEncoding >> >>"
        f" /ExtGState << /GS1 << /ca {opacity:.2f} /CA {opacity:.2f} >> >> >>\n"
        f"   /Length {len(stream)}\n"
        f">>\nstream\n"
    )
    return header.encode("latin-1") + stream + b"\nendstream"
