"""Tests for in-place ByteRange patching and signature embedding."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from pdfseal.core.pdf import (
    ByteRangeSpec,
    SignatureMetadata,
    embed_signature,
    extract_embedded_signature,
    insert_placeholder,
    load_document,
    locate_byte_range,
    patch_byte_range,
    serialize_with_placeholder,
)
from pdfseal.core.pdf.embed import render_byte_range
from pdfseal.core.pdf.objects import BYTERANGE_PLACEHOLDER
from pdfseal.errors import PDFError, PlaceholderNotFound, SignatureTooLarge


@pytest.fixture
def prepared(valid_pdf_bytes):
    meta = SignatureMetadata(max_signature_bytes=1024)
    doc = insert_placeholder(load_document(valid_pdf_bytes), meta, datetime.now(timezone.utc))
    data, placeholder = serialize_with_placeholder(doc, meta.hex_size)
    return data, placeholder, locate_byte_range(data, placeholder.contents)


def test_render_byte_range_fixed_width():
    rendered = render_byte_range(ByteRangeSpec(gap_start=4, gap_end=10, end=14))
    assert rendered == b"/ByteRange [         0          4         10          4]"
    assert len(rendered) == len(BYTERANGE_PLACEHOLDER)


def test_patch_byte_range_keeps_length(prepared):
    data, placeholder, spec = prepared
    patched = patch_byte_range(data, placeholder, spec)
    assert len(patched) == len(data)
    values = re.search(rb"/ByteRange \[([ \d]+)\]", patched[placeholder.byte_range_offset :])
    assert tuple(int(v) for v in values.group(1).split()) == spec.as_array()


def test_patch_byte_range_twice_is_identical(prepared):
    data, placeholder, spec = prepared
    once = patch_byte_range(data, placeholder, spec)
    assert patch_byte_range(once, placeholder, spec) == once


def test_patch_byte_range_wrong_offset(prepared):
    data, placeholder, spec = prepared
    from dataclasses import replace

    shifted = replace(placeholder, byte_range_offset=placeholder.byte_range_offset + 1)
    with pytest.raises(PlaceholderNotFound, match="No fixed-width ByteRange"):
        patch_byte_range(data, shifted, spec)


def test_patch_byte_range_value_too_wide(prepared):
    data, placeholder, _ = prepared
    huge = ByteRangeSpec(gap_start=4, gap_end=10, end=10**12)
    with pytest.raises(PlaceholderNotFound, match="does not fit"):
        patch_byte_range(data, placeholder, huge)


def test_embed_writes_padded_hex(prepared):
    data, placeholder, spec = prepared
    blob = bytes([0x30, 0x03, 0x02, 0x01, 0x00])
    signed = embed_signature(data, placeholder, spec, blob)

    assert len(signed) == len(data)
    span = placeholder.contents
    hex_area = signed[span.offset : span.end]
    assert hex_area.startswith(blob.hex().encode())
    assert hex_area[len(blob) * 2 :] == b"0" * (span.length - len(blob) * 2)
    # Only the reserved span and the ByteRange array change
    assert signed[: placeholder.byte_range_offset] == data[: placeholder.byte_range_offset]
    assert signed[span.end :] == data[span.end :]

    embedded = extract_embedded_signature(signed)
    assert embedded is not None
    assert embedded.cms_der == blob


def test_embed_exact_fit(prepared):
    data, placeholder, spec = prepared
    size = placeholder.contents.length // 2
    blob = bytes([0x30, 0x82]) + (size - 4).to_bytes(2, "big") + b"\x01" * (size - 4)
    signed = embed_signature(data, placeholder, spec, blob)
    assert extract_embedded_signature(signed).cms_der == blob


def test_embed_too_large(prepared):
    data, placeholder, spec = prepared
    blob = b"\x30" * (placeholder.contents.length // 2 + 1)
    with pytest.raises(SignatureTooLarge) as exc_info:
        embed_signature(data, placeholder, spec, blob)
    assert exc_info.value.required == len(blob) * 2
    assert exc_info.value.reserved == placeholder.contents.length


def test_embed_mismatched_spec(prepared):
    data, placeholder, spec = prepared
    wrong = ByteRangeSpec(gap_start=spec.gap_start - 1, gap_end=spec.gap_end, end=spec.end)
    with pytest.raises(PDFError, match="does not match the reserved span"):
        embed_signature(data, placeholder, wrong, b"\x30\x00")
