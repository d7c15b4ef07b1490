"""Low-level PDF object helpers.

Literal-string escaping, PDF dates, serialization of objects read through
pikepdf, and the overrides of existing objects (page, catalog) that an
incremental update needs to attach a signature field.
"""

from __future__ import annotations

__all__ = [
    "ANNOT_FLAGS_SIG_WIDGET",
    "BYTERANGE_PLACEHOLDER",
    "ObjRef",
    "build_catalog_override",
    "build_object_override",
    "build_page_override",
    "pdf_date",
    "pdf_string",
]

import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ...errors import MalformedDocument
from .. import require_pikepdf as _require_pikepdf

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────────

# Four right-aligned 10-digit fields; patched in place once offsets are known.
BYTERANGE_PLACEHOLDER = b"/ByteRange [         0          0          0          0]"

# PDF annotation flags for signature widget (/F entry).
# Print flag is 4, Locked flag is 128; combined value is 132.
_ANNOT_FLAG_PRINT = 4
_ANNOT_FLAG_LOCKED = 128
ANNOT_FLAGS_SIG_WIDGET = _ANNOT_FLAG_PRINT | _ANNOT_FLAG_LOCKED  # 132

# /SigFlags: SignaturesExist (1) | AppendOnly (2)
_SIG_FLAGS = 3


@dataclass(frozen=True)
class ObjRef:
    """Indirect object reference (object number + generation)."""

    num: int
    gen: int = 0

    def __str__(self) -> str:
        return f"{self.num} {self.gen} R"


# ── PDF string/object helpers ────────────────────────────────────────


def pdf_string(text: str) -> str:
    """Escape text for a PDF literal string.

    Handles backslash, parentheses, control characters, and non-Latin1
    characters (replaced with '?' since PDFDocEncoding has limited
    Unicode support).
    """
    result: list[str] = []
    replaced_count = 0
    for char in text:
        code = ord(char)
        if char == "\\":
            result.append("\\\\")
        elif char == "(":
            result.append("\\(")
        elif char == ")":
            result.append("\\)")
        elif char == "\n":
            result.append("\\n")
        elif char == "\r":
            result.append("\\r")
        elif char == "\t":
            result.append("\\t")
        elif code < 0x20 or code == 0x7F:
            result.append(f"\\{code:03o}")
        elif code > 0xFF:
            result.append("?")
            replaced_count += 1
        else:
            result.append(char)
    if replaced_count > 0:
        _logger.warning(
            "pdf_string: %d non-Latin1 character(s) replaced with '?' in: %r", replaced_count, text
        )
    return "".join(result)


def pdf_date(moment: datetime) -> str:
    """Format a datetime as a PDF date string in UTC (``D:YYYYMMDDHHmmSS+00'00'``)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%S+00'00'")


def _serialize_pikepdf_obj(obj: None | bool | int | float | pikepdf.Object) -> str:
    """Serialize a pikepdf object to a raw PDF string for embedding.

    Indirect references are emitted as ``N G R``; everything else goes
    through pikepdf's own unparser.
    """
    if obj is None:
        return "null"
    if isinstance(obj, bool):
        return "true" if obj else "false"
    if isinstance(obj, int):
        return str(obj)
    if isinstance(obj, float):
        return str(int(obj)) if obj % 1 == 0.0 else f"{obj:.6f}"
    pikepdf = _require_pikepdf()
    if isinstance(obj, pikepdf.Object) and obj.is_indirect:
        return f"{obj.objgen[0]} {obj.objgen[1]} R"
    return obj.unparse(resolved=True).decode("latin-1")


# ── Object override builders ─────────────────────────────────────────


def _dict_entries(obj: pikepdf.Object, skip_keys: tuple[str, ...]) -> list[str]:
    # pikepdf dict requires .keys() -- __iter__ yields values, not keys
    return [
        f"  {key} {_serialize_pikepdf_obj(obj[key])}"
        for key in list(obj.keys())
        if key not in skip_keys
    ]


def _get_object(pdf: pikepdf.Pdf, ref: ObjRef) -> pikepdf.Object:
    pikepdf = _require_pikepdf()
    try:
        return pdf.get_object((ref.num, ref.gen))
    except (ValueError, KeyError, pikepdf.PdfError) as e:
        raise MalformedDocument(f"Cannot read object {ref}: {e}") from e


def build_object_override(
    pdf_bytes: bytes,
    ref: ObjRef,
    skip_keys: tuple[str, ...],
    new_entries: list[str],
) -> str:
    """Build the body of a dictionary object with some entries replaced.

    Opens the PDF in memory, copies every entry of the target object except
    *skip_keys*, and appends *new_entries*.

    Args:
        pdf_bytes: Raw PDF content.
        ref: Target object reference.
        skip_keys: Keys to omit from the original object (e.g. ``"/Annots"``).
        new_entries: Raw entries to append (e.g. ``"  /Annots [5 0 R]"``).

    Returns:
        Dictionary source text, without the ``obj``/``endobj`` wrapper.
    """
    pikepdf = _require_pikepdf()
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        entries = _dict_entries(_get_object(pdf, ref), skip_keys)
    entries.extend(new_entries)
    body = "\n".join(entries)
    return f"<<\n{body}\n>>"


def build_page_override(pdf_bytes: bytes, page_ref: ObjRef, annots: list[str]) -> str:
    """Build an override of the page object with a replaced /Annots array."""
    return build_object_override(
        pdf_bytes,
        page_ref,
        skip_keys=("/Annots",),
        new_entries=[f"  /Annots [{' '.join(annots)}]"],
    )


def build_catalog_override(pdf_bytes: bytes, root_ref: ObjRef, field_ref: ObjRef) -> str:
    """Build an override of the catalog that registers *field_ref* in /AcroForm.

    Existing form fields and other AcroForm entries (/DR, /DA, ...) are
    kept; /SigFlags is set to 3.
    """
    pikepdf = _require_pikepdf()
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        catalog = _get_object(pdf, root_ref)
        entries = _dict_entries(catalog, ("/AcroForm",))
        acro_entries: list[str] = []
        fields: list[str] = []
        acro_form = catalog.get("/AcroForm")
        if isinstance(acro_form, pikepdf.Dictionary):
            for key in list(acro_form.keys()):
                if key in ("/Fields", "/SigFlags"):
                    continue
                acro_entries.append(f"{key} {_serialize_pikepdf_obj(acro_form[key])}")
            existing = acro_form.get("/Fields")
            if isinstance(existing, pikepdf.Array):
                fields = [_serialize_pikepdf_obj(existing[i]) for i in range(len(existing))]
            _logger.debug("Merging into existing AcroForm with %d field(s)", len(fields))

    fields.append(str(field_ref))
    acro_entries.insert(0, f"/Fields [{' '.join(fields)}]")
    acro_entries.append(f"/SigFlags {_SIG_FLAGS}")
    entries.append(f"  /AcroForm << {' '.join(acro_entries)} >>")
    body = "\n".join(entries)
    return f"<<\n{body}\n>>"
