"""Tests for pdfseal.errors -- exception hierarchy."""

import pickle

import pytest

from pdfseal.errors import (
    CertificateError,
    ConfigError,
    MalformedDocument,
    PDFError,
    PlaceholderNotFound,
    SealError,
    SignatureTooLarge,
    SigningError,
)


def test_seal_error_is_exception():
    assert issubclass(SealError, Exception)


@pytest.mark.parametrize("cls", [MalformedDocument, PlaceholderNotFound, SignatureTooLarge])
def test_document_errors_inherit_pdf_error(cls):
    assert issubclass(cls, PDFError)
    assert issubclass(cls, SealError)


@pytest.mark.parametrize(
    ("cls", "kind"),
    [
        (SealError, "error"),
        (PDFError, "pdf_error"),
        (MalformedDocument, "malformed_document"),
        (PlaceholderNotFound, "placeholder_not_found"),
        (SignatureTooLarge, "signature_too_large"),
        (SigningError, "signing_error"),
        (CertificateError, "certificate_error"),
        (ConfigError, "config_error"),
    ],
)
def test_kind_strings(cls, kind):
    assert cls.kind == kind


def test_catch_all_with_base():
    """All specific errors should be catchable via SealError."""
    for cls in (MalformedDocument, SigningError, CertificateError, ConfigError):
        with pytest.raises(SealError):
            raise cls("test")


def test_signature_too_large_sizes():
    e = SignatureTooLarge("too big", required=20000, reserved=16384)
    assert e.required == 20000
    assert e.reserved == 16384
    assert str(e) == "too big"


def test_signature_too_large_defaults():
    e = SignatureTooLarge("too big")
    assert e.required == 0
    assert e.reserved == 0


def test_signature_too_large_pickle_roundtrip():
    e = SignatureTooLarge("too big", required=10, reserved=8)
    restored = pickle.loads(pickle.dumps(e))
    assert isinstance(restored, SignatureTooLarge)
    assert str(restored) == "too big"
    assert restored.required == 10
    assert restored.reserved == 8
