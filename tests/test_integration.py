"""Cross-checks against an independent PDF signature validator (pyHanko).

Skipped when pyHanko is not installed (``pip install -e .[test]``).
"""

from __future__ import annotations

import io

import pytest
from asn1crypto import x509 as asn1_x509
from cryptography.hazmat.primitives import serialization

from pdfseal.core.pdf import SignatureMetadata
from pdfseal.core.signing import sign_pdf

pytest.importorskip("pyhanko")

from pyhanko.pdf_utils.reader import PdfFileReader  # noqa: E402
from pyhanko.sign import validation  # noqa: E402
from pyhanko_certvalidator import ValidationContext  # noqa: E402

pytestmark = pytest.mark.integration


def _validation_context(key) -> ValidationContext:
    root = asn1_x509.Certificate.load(key.certificate.public_bytes(serialization.Encoding.DER))
    return ValidationContext(trust_roots=[root], allow_fetching=False)


def _validate(signed: bytes, key):
    reader = PdfFileReader(io.BytesIO(signed))
    assert reader.embedded_signatures
    sig = reader.embedded_signatures[-1]
    return validation.validate_pdf_signature(
        sig, signer_validation_context=_validation_context(key), skip_diff=True
    )


@pytest.mark.parametrize("visible", [True, False])
def test_pyhanko_accepts_rsa_signature(three_page_pdf, rsa_key, visible):
    signed = sign_pdf(three_page_pdf, rsa_key, SignatureMetadata(visible=visible))
    status = _validate(signed, rsa_key)
    assert status.intact
    assert status.valid
    assert status.signing_cert.subject.native["common_name"] == "Test Signer"


def test_pyhanko_accepts_ec_signature(valid_pdf_bytes, ec_key):
    status = _validate(sign_pdf(valid_pdf_bytes, ec_key), ec_key)
    assert status.intact
    assert status.valid


def test_pyhanko_reads_signature_fields(valid_pdf_bytes, rsa_key):
    meta = SignatureMetadata(reason="Approval", location="Berlin", name="John Doe")
    signed = sign_pdf(valid_pdf_bytes, rsa_key, meta)
    sig = PdfFileReader(io.BytesIO(signed)).embedded_signatures[-1]
    assert sig.sig_object["/Reason"] == "Approval"
    assert sig.sig_object["/Location"] == "Berlin"
    assert sig.sig_object["/Name"] == "John Doe"
