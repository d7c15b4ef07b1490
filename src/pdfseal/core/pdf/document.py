"""PDF document model and incremental update assembly.

A :class:`PdfDocument` keeps the original bytes untouched and collects new
or overridden objects in an arena keyed by object number.  Serializing it
appends exactly one incremental-update section: the objects, a classic
xref table, and a trailer chained to the previous one with /Prev.

pikepdf is used only for reading; the original file is never re-saved.
"""

from __future__ import annotations

__all__ = [
    "IndirectObject",
    "PageInfo",
    "PdfDocument",
    "Trailer",
    "build_xref_and_trailer",
    "find_prev_startxref",
    "load_document",
]

import io
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ...constants import PDF_MAGIC
from ...errors import MalformedDocument, PDFError
from .. import require_pikepdf as _require_pikepdf
from .objects import ObjRef, _serialize_pikepdf_obj
from .position import get_page_dimensions

if TYPE_CHECKING:
    import pikepdf

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Trailer:
    """Entries of the most recent trailer that the update must carry forward."""

    root: ObjRef
    size: int
    prev_xref: int
    extra: tuple[str, ...] = ()  # raw /Info and /ID entries


@dataclass(frozen=True)
class PageInfo:
    """A page of the original document, as seen by the placeholder injector."""

    ref: ObjRef
    width: float
    height: float
    annots: tuple[str, ...] = ()  # serialized /Annots entries


@dataclass(frozen=True)
class IndirectObject:
    ref: ObjRef
    body: bytes

    def to_bytes(self) -> bytes:
        head = f"{self.ref.num} {self.ref.gen} obj\n".encode("latin-1")
        return head + self.body + b"\nendobj\n"


@dataclass
class PdfDocument:
    """Original bytes + trailer + pages + arena of objects to append."""

    original: bytes
    trailer: Trailer
    pages: tuple[PageInfo, ...]
    objects: dict[int, IndirectObject] = field(default_factory=dict)
    _next_num: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        self._next_num = self.trailer.size

    @property
    def size(self) -> int:
        """/Size of the updated cross-reference section."""
        return self._next_num

    def allocate(self) -> ObjRef:
        """Hand out a fresh object number."""
        ref = ObjRef(self._next_num)
        self._next_num += 1
        return ref

    def put(self, ref: ObjRef, body: str | bytes) -> None:
        """Add or replace an object in the update section."""
        raw = body if isinstance(body, bytes) else body.encode("latin-1")
        self.objects[ref.num] = IndirectObject(ref, raw)

    def serialize(self) -> bytes:
        """Return original bytes followed by one incremental-update section."""
        if not self.objects:
            raise PDFError("Cannot serialize an incremental update with no objects.")

        base = self.original
        if not base.endswith(b"\n"):
            base = base + b"\n"

        chunks: list[bytes] = []
        xref_entries: dict[int, tuple[int, int]] = {}
        offset = len(base)
        for obj in self.objects.values():
            raw = obj.to_bytes()
            xref_entries[obj.ref.num] = (offset, obj.ref.gen)
            chunks.append(raw)
            offset += len(raw)

        xref = build_xref_and_trailer(
            xref_entries=xref_entries,
            new_size=self.size,
            trailer=self.trailer,
            xref_offset=offset,
        )
        return base + b"".join(chunks) + xref


# ── PDF structure analysis ───────────────────────────────────────────


def find_prev_startxref(pdf_bytes: bytes) -> int:
    """Return the offset in the LAST ``startxref`` of the file.

    Files with incremental updates carry several startxref/%%EOF pairs;
    the last one is authoritative.  Trailing junk after %%EOF is tolerated.
    """
    matches = list(re.finditer(rb"startxref\s+(\d+)\s+%%EOF", pdf_bytes))
    if not matches:
        raise MalformedDocument("Cannot find startxref in PDF.")
    return int(matches[-1].group(1))


def _trailer_extras(pdf: pikepdf.Pdf) -> tuple[str, ...]:
    """Collect /Info and /ID from the resolved trailer (classic or xref stream)."""
    pikepdf = _require_pikepdf()
    trailer = pdf.trailer
    extra: list[str] = []
    if "/Info" in trailer:
        info_obj = trailer["/Info"]
        if isinstance(info_obj, pikepdf.Object) and info_obj.is_indirect:
            extra.append(f"/Info {info_obj.objgen[0]} {info_obj.objgen[1]} R")
    if "/ID" in trailer:
        extra.append(f"/ID {_serialize_pikepdf_obj(trailer['/ID'])}")
    return tuple(extra)


def load_document(pdf_bytes: bytes) -> PdfDocument:
    """Parse *pdf_bytes* into a :class:`PdfDocument`.

    Raises:
        MalformedDocument: If the input is not a PDF, cannot be parsed,
            is encrypted, or has no pages.
    """
    if not pdf_bytes or not pdf_bytes.startswith(PDF_MAGIC):
        raise MalformedDocument("Input does not appear to be a PDF file.")

    prev_xref = find_prev_startxref(pdf_bytes)

    pikepdf = _require_pikepdf()
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            if pdf.is_encrypted:
                raise MalformedDocument("Encrypted PDFs cannot be signed.")
            root = pdf.trailer["/Root"]
            root_ref = ObjRef(*root.objgen)
            # pikepdf resolves /Size across xref streams and hybrid files
            size = int(pdf.trailer["/Size"])
            extra = _trailer_extras(pdf)
            pages: list[PageInfo] = []
            for page in pdf.pages:
                width, height = get_page_dimensions(page)
                annots: tuple[str, ...] = ()
                if "/Annots" in page.obj:
                    existing = page.obj["/Annots"]
                    annots = tuple(
                        _serialize_pikepdf_obj(existing[i]) for i in range(len(existing))
                    )
                pages.append(PageInfo(ObjRef(*page.obj.objgen), width, height, annots))
    except pikepdf.PasswordError as e:
        raise MalformedDocument(f"Encrypted PDFs cannot be signed: {e}") from e
    except (pikepdf.PdfError, KeyError, ValueError, TypeError) as e:
        raise MalformedDocument(f"Cannot parse PDF: {e}") from e

    if root_ref.num == 0:
        raise MalformedDocument("Document catalog is not an indirect object.")
    if not pages:
        raise MalformedDocument("Document has no pages.")

    _logger.debug(
        "Loaded PDF: %d bytes, %d page(s), /Size %d, startxref %d",
        len(pdf_bytes),
        len(pages),
        size,
        prev_xref,
    )
    return PdfDocument(
        original=pdf_bytes,
        trailer=Trailer(root=root_ref, size=size, prev_xref=prev_xref, extra=extra),
        pages=tuple(pages),
    )


# ── Xref table builder ──────────────────────────────────────────────


def build_xref_and_trailer(
    xref_entries: dict[int, tuple[int, int]],
    new_size: int,
    trailer: Trailer,
    xref_offset: int,
) -> bytes:
    """Build an xref table and trailer for an incremental update.

    Args:
        xref_entries: Mapping of object number to (byte offset, generation).
        new_size: Total object count (/Size value).
        trailer: Previous trailer data (/Prev, /Root, carried entries).
        xref_offset: Byte offset where this xref table starts.

    Returns:
        Raw bytes of the xref table, trailer, and %%EOF.
    """
    if not xref_entries:
        raise PDFError("Cannot build xref table: no objects to reference.")

    lines = ["xref"]

    # Group consecutive object numbers into subsections
    sorted_nums = sorted(xref_entries)
    groups: list[list[int]] = []
    current = [sorted_nums[0]]
    for n in sorted_nums[1:]:
        if n == current[-1] + 1:
            current.append(n)
        else:
            groups.append(current)
            current = [n]
    groups.append(current)

    for group in groups:
        lines.append(f"{group[0]} {len(group)}")
        # Each entry is exactly 20 bytes: 18 chars + \r + the \n from join()
        lines.extend(
            f"{xref_entries[num][0]:010d} {xref_entries[num][1]:05d} n\r" for num in group
        )

    lines.append("trailer")
    lines.append("<<")
    lines.append(f"  /Size {new_size}")
    lines.append(f"  /Prev {trailer.prev_xref}")
    lines.append(f"  /Root {trailer.root}")
    lines.extend(f"  {extra}" for extra in trailer.extra)
    lines.append(">>")
    lines.append("startxref")
    lines.append(str(xref_offset))
    lines.append("%%EOF")
    lines.append("")

    return "\n".join(lines).encode("latin-1")
