"""End-to-end tests for embedded PDF signing."""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone

import pikepdf
import pytest

from pdfseal.core.engine import VerificationReason
from pdfseal.core.pdf import SignatureMetadata, extract_embedded_signature
from pdfseal.core.signing import sign_pdf
from pdfseal.core.verification import verify_pdf
from pdfseal.errors import MalformedDocument, SignatureTooLarge, SigningError

from .conftest import make_pdf

# ── Round trip ───────────────────────────────────────────────────────


def test_sign_then_verify(signed_pdf, trusted):
    result = verify_pdf(signed_pdf, trusted)
    assert result["valid"] is True
    assert result["reason"] is VerificationReason.NONE
    assert result["signer"]["name"] == "Test Signer"


def test_signed_output_is_incremental(valid_pdf_bytes, rsa_key):
    signed = sign_pdf(valid_pdf_bytes, rsa_key)
    assert signed.startswith(valid_pdf_bytes)
    assert len(signed) > len(valid_pdf_bytes)
    assert signed.rstrip().endswith(b"%%EOF")


def test_byte_range_covers_whole_file_except_contents(signed_pdf):
    embedded = extract_embedded_signature(signed_pdf)
    spec = embedded.byte_range
    assert spec.as_array()[0] == 0
    assert spec.end == len(signed_pdf)
    assert spec.covered == len(signed_pdf) - embedded.contents.length - 2


def test_signed_pdf_opens_with_pikepdf(signed_pdf):
    with pikepdf.open(io.BytesIO(signed_pdf)) as pdf:
        assert len(pdf.pages) == 2
        fields = pdf.Root.AcroForm.Fields
        sig = next(f for f in fields if f.get("/FT") == "/Sig").V
        assert sig.SubFilter == "/adbe.pkcs7.detached"
        assert str(sig.Name) == "Test Signer"
        assert [int(v) for v in sig.ByteRange][0] == 0


def test_explicit_metadata(valid_pdf_bytes, rsa_key, trusted):
    meta = SignatureMetadata(
        reason="Approval",
        contact_info="signer@example.com",
        name="John Doe",
        location="Free Text Str., Free World",
        visible=False,
    )
    signing_time = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
    signed = sign_pdf(valid_pdf_bytes, rsa_key, meta, signing_time=signing_time)

    result = verify_pdf(signed, trusted)
    assert result["valid"]
    assert result["signing_time"] == signing_time
    with pikepdf.open(io.BytesIO(signed)) as pdf:
        sig = next(f for f in pdf.Root.AcroForm.Fields if f.get("/FT") == "/Sig").V
        assert str(sig.Name) == "John Doe"
        assert str(sig.Reason) == "Approval"
        assert str(sig.Location) == "Free Text Str., Free World"


def test_ec_key(valid_pdf_bytes, ec_key):
    from pdfseal.core.keys import TrustAnchor

    signed = sign_pdf(valid_pdf_bytes, ec_key)
    result = verify_pdf(signed, TrustAnchor.from_certificate(ec_key.certificate))
    assert result["valid"]


@pytest.mark.parametrize("algorithm", ["sha384", "sha512"])
def test_other_digest_algorithms(valid_pdf_bytes, rsa_key, trusted, algorithm):
    signed = sign_pdf(valid_pdf_bytes, rsa_key, digest_algorithm=algorithm)
    assert verify_pdf(signed, trusted)["valid"]


def test_existing_annotations_and_fields_preserved(rsa_key, trusted):
    signed = sign_pdf(make_pdf(with_form_field=True), rsa_key)
    assert verify_pdf(signed, trusted)["valid"]
    with pikepdf.open(io.BytesIO(signed)) as pdf:
        assert len(pdf.pages[-1].obj.Annots) == 3
        assert len(pdf.Root.AcroForm.Fields) == 2


def test_sign_already_signed_document(signed_pdf, rsa_key, trusted):
    resigned = sign_pdf(signed_pdf, rsa_key)
    assert resigned.startswith(signed_pdf)
    assert verify_pdf(resigned, trusted)["valid"]


# ── Tamper detection ─────────────────────────────────────────────────


def test_flipped_byte_is_digest_mismatch(signed_pdf, trusted):
    data = bytearray(signed_pdf)
    # A byte of the original document, well inside the first span
    data[20] ^= 0x01
    result = verify_pdf(bytes(data), trusted)
    assert result["valid"] is False
    assert result["reason"] is VerificationReason.DIGEST_MISMATCH


def test_every_flipped_signature_dictionary_byte_is_digest_mismatch(signed_pdf, trusted):
    spec = extract_embedded_signature(signed_pdf).byte_range
    start = signed_pdf.rindex(b"/Type /Sig")
    end = min(len(signed_pdf), spec.gap_end + 200)
    wrong = []
    for offset in range(start, end):
        if spec.gap_start <= offset < spec.gap_end:
            continue
        data = bytearray(signed_pdf)
        data[offset] ^= 0x01
        reason = verify_pdf(bytes(data), trusted)["reason"]
        if reason is not VerificationReason.DIGEST_MISMATCH:
            wrong.append((offset, bytes(signed_pdf[offset : offset + 8]), reason))
    assert wrong == []


def test_unsigned_document_with_signature_field_is_unsigned(trusted):
    # An empty /FT /Sig field has no /V signature dictionary yet
    pdf = pikepdf.Pdf.new()
    pdf.add_blank_page(page_size=(612, 792))
    sig_field = pdf.make_indirect(
        pikepdf.Dictionary(
            Type=pikepdf.Name.Annot,
            Subtype=pikepdf.Name.Widget,
            FT=pikepdf.Name.Sig,
            T=pikepdf.String("Approval"),
            Rect=pikepdf.Array([0, 0, 0, 0]),
        )
    )
    pdf.pages[0].obj["/Annots"] = pikepdf.Array([sig_field])
    pdf.Root["/AcroForm"] = pikepdf.Dictionary(Fields=pikepdf.Array([sig_field]))
    buf = io.BytesIO()
    pdf.save(buf, object_stream_mode=pikepdf.ObjectStreamMode.disable)

    result = verify_pdf(buf.getvalue(), trusted)
    assert result["reason"] is VerificationReason.NO_SIGNATURE_PRESENT


def test_appended_bytes_are_digest_mismatch(signed_pdf, trusted):
    result = verify_pdf(signed_pdf + b"\n% appended\n", trusted)
    assert result["reason"] is VerificationReason.DIGEST_MISMATCH
    assert any("modified after signing" in d for d in result["details"])


def test_wrong_trusted_certificate(signed_pdf, other_rsa_key):
    from pdfseal.core.keys import TrustAnchor

    result = verify_pdf(signed_pdf, TrustAnchor.from_certificate(other_rsa_key.certificate))
    assert result["reason"] is VerificationReason.INVALID_CRYPTOGRAPHIC_SIGNATURE


# ── Failures ─────────────────────────────────────────────────────────


def test_signature_too_large(valid_pdf_bytes, rsa_key, caplog):
    meta = SignatureMetadata(max_signature_bytes=64)
    with caplog.at_level(logging.ERROR, logger="pdfseal.core.signing"):
        with pytest.raises(SignatureTooLarge) as exc_info:
            sign_pdf(valid_pdf_bytes, rsa_key, meta)
    assert exc_info.value.reserved == 128
    assert exc_info.value.required > 128
    assert "aborted in state signed" in caplog.text


def test_not_a_pdf(rsa_key):
    with pytest.raises(MalformedDocument):
        sign_pdf(b"hello world", rsa_key)


def test_unsupported_digest(valid_pdf_bytes, rsa_key):
    with pytest.raises(SigningError):
        sign_pdf(valid_pdf_bytes, rsa_key, digest_algorithm="md5")
