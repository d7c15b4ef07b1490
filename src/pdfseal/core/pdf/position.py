"""
Signature appearance positioning and page geometry helpers.

Computes where to place the visible signature rectangle on a PDF page,
given a preset name ("bottom-left", "bl", etc.).
"""

from __future__ import annotations

__all__ = [
    "POSITION_ALIASES",
    "POSITION_PRESETS",
    "SIG_MARGIN_H",
    "SIG_MARGIN_V",
    "compute_sig_rect",
    "get_page_dimensions",
    "resolve_position",
]

from typing import TYPE_CHECKING

from ...errors import PDFError

if TYPE_CHECKING:
    import pikepdf

# ── Signature position presets ────────────────────────────────────────

# Distance of the appearance box from the page edges, in PDF points
SIG_MARGIN_H = 25
SIG_MARGIN_V = 10

# Full names -> short aliases
POSITION_ALIASES = {
    "br": "bottom-right",
    "tr": "top-right",
    "bl": "bottom-left",
    "tl": "top-left",
    "bc": "bottom-center",
}

POSITION_PRESETS = {
    "bottom-right",
    "top-right",
    "bottom-left",
    "top-left",
    "bottom-center",
}


def resolve_position(position_name: str) -> str:
    """Normalize a position name, resolving aliases.

    >>> resolve_position("bl")
    'bottom-left'

    Raises PDFError for unknown positions.
    """
    name = position_name.lower().strip()
    name = POSITION_ALIASES.get(name, name)
    if name not in POSITION_PRESETS:
        valid = sorted(POSITION_PRESETS) + sorted(POSITION_ALIASES)
        raise PDFError(f"Unknown position {position_name!r}. Valid: {', '.join(valid)}")
    return name


def compute_sig_rect(
    page_width: float,
    page_height: float,
    position: str,
    sig_w: float,
    sig_h: float,
    margin_h: float = SIG_MARGIN_H,
    margin_v: float = SIG_MARGIN_V,
) -> tuple[float, float, float, float]:
    """Compute the appearance rectangle for a page and a preset.

    Returns:
        (x, y, sig_w, sig_h) in PDF coordinate space (origin = bottom-left).

    Raises:
        PDFError: If the page or box dimensions are invalid, or the box
            does not fit on the page.
    """
    if page_width <= 0 or page_height <= 0:
        raise PDFError(f"Invalid page dimensions: {page_width:.1f} x {page_height:.1f} pt")
    if sig_w <= 0 or sig_h <= 0:
        raise PDFError(f"Invalid signature dimensions: {sig_w:.1f} x {sig_h:.1f} pt")

    position = resolve_position(position)

    if "right" in position:
        x = page_width - margin_h - sig_w
    elif "left" in position:
        x = margin_h
    else:  # center
        x = (page_width - sig_w) / 2.0

    if "bottom" in position:
        y = margin_v
    else:  # top
        y = page_height - margin_v - sig_h

    if x < 0 or y < 0:
        raise PDFError(
            f"Signature does not fit on page: computed position ({x:.1f}, {y:.1f}) is negative. "
            f"Page: {page_width:.0f}x{page_height:.0f} pt, "
            f"signature: {sig_w:.0f}x{sig_h:.0f} pt"
        )

    return x, y, sig_w, sig_h


def get_page_dimensions(page: pikepdf.Page) -> tuple[float, float]:
    """Get effective (width, height) for a page, respecting CropBox and Rotate."""
    # CropBox takes priority over MediaBox for visible area
    crop_box = page.obj.get("/CropBox")
    box = crop_box if crop_box is not None else page.mediabox
    x0, y0, x1, y1 = float(box[0]), float(box[1]), float(box[2]), float(box[3])
    w = abs(x1 - x0)
    h = abs(y1 - y0)

    # /Rotate is clockwise degrees; 90 and 270 swap width/height
    rotate_val = page.obj.get("/Rotate")
    rotate = (int(rotate_val) if rotate_val is not None else 0) % 360
    if rotate in (90, 270):
        w, h = h, w

    return w, h
