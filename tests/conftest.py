"""Shared test fixtures for pdfseal test suite."""

from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from pdfseal.core.keys import KeyMaterial, TrustAnchor

P12_PASSPHRASE = "s3cret"


def make_cert(
    private_key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey,
    common_name: str,
    not_before: datetime | None = None,
    not_after: datetime | None = None,
) -> x509.Certificate:
    """Self-signed certificate usable for document signing."""
    now = datetime.now(timezone.utc)
    name = x509.Name(
        [
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, "pdfseal tests"),
            x509.NameAttribute(NameOID.EMAIL_ADDRESS, "signer@example.com"),
        ]
    )
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before or now - timedelta(days=1))
        .not_valid_after(not_after or now + timedelta(days=365))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=True,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .sign(private_key, hashes.SHA256())
    )


def make_pdf(pages: int = 1, with_annotation: bool = False, with_form_field: bool = False) -> bytes:
    """Build a PDF with pikepdf (classic xref table, no object streams)."""
    import pikepdf

    pdf = pikepdf.Pdf.new()
    for _ in range(pages):
        pdf.add_blank_page(page_size=(612, 792))
    if with_annotation or with_form_field:
        page = pdf.pages[-1]
        link = pdf.make_indirect(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Annot,
                Subtype=pikepdf.Name.Link,
                Rect=pikepdf.Array([10, 10, 50, 50]),
                Border=pikepdf.Array([0, 0, 0]),
            )
        )
        page.obj["/Annots"] = pikepdf.Array([link])
        if with_form_field:
            text_field = pdf.make_indirect(
                pikepdf.Dictionary(
                    Type=pikepdf.Name.Annot,
                    Subtype=pikepdf.Name.Widget,
                    FT=pikepdf.Name.Tx,
                    T=pikepdf.String("comment"),
                    Rect=pikepdf.Array([100, 700, 300, 720]),
                    P=page.obj,
                )
            )
            page.obj["/Annots"].append(text_field)
            pdf.Root["/AcroForm"] = pikepdf.Dictionary(
                Fields=pikepdf.Array([text_field]),
                DA=pikepdf.String("/Helv 0 Tf 0 g"),
            )
    buf = io.BytesIO()
    pdf.save(buf, object_stream_mode=pikepdf.ObjectStreamMode.disable)
    return buf.getvalue()


# ── Keys ─────────────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def rsa_key() -> KeyMaterial:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return KeyMaterial(private_key=private_key, certificate=make_cert(private_key, "Test Signer"))


@pytest.fixture(scope="session")
def ec_key() -> KeyMaterial:
    private_key = ec.generate_private_key(ec.SECP256R1())
    return KeyMaterial(private_key=private_key, certificate=make_cert(private_key, "EC Signer"))


@pytest.fixture(scope="session")
def other_rsa_key() -> KeyMaterial:
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return KeyMaterial(private_key=private_key, certificate=make_cert(private_key, "Someone Else"))


@pytest.fixture(scope="session")
def trusted(rsa_key) -> TrustAnchor:
    return TrustAnchor.from_certificate(rsa_key.certificate)


@pytest.fixture(scope="session")
def expired_anchor(rsa_key) -> TrustAnchor:
    """Same public key as ``rsa_key`` but a certificate that expired last year."""
    now = datetime.now(timezone.utc)
    cert = make_cert(
        rsa_key.private_key,
        "Test Signer",
        not_before=now - timedelta(days=730),
        not_after=now - timedelta(days=365),
    )
    return TrustAnchor.from_certificate(cert)


@pytest.fixture(scope="session")
def p12_bytes(rsa_key) -> bytes:
    return pkcs12.serialize_key_and_certificates(
        b"signer",
        rsa_key.private_key,
        rsa_key.certificate,
        None,
        serialization.BestAvailableEncryption(P12_PASSPHRASE.encode()),
    )


@pytest.fixture(scope="session")
def cert_pem(rsa_key) -> bytes:
    return rsa_key.certificate.public_bytes(serialization.Encoding.PEM)


# ── Documents ────────────────────────────────────────────────────────


@pytest.fixture
def valid_pdf_bytes() -> bytes:
    """A one-page PDF."""
    return make_pdf()


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_pdf(pages=3)


@pytest.fixture(scope="session")
def signed_pdf(rsa_key) -> bytes:
    from pdfseal.core.signing import sign_pdf

    return sign_pdf(make_pdf(pages=2), rsa_key)


# ── Config isolation ─────────────────────────────────────────────────


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Redirect config to a temp directory and disable the real keyring.

    Use the ``memory_keyring`` fixture to test with an in-memory backend.
    """
    for var in (
        "PDFSEAL_P12",
        "PDFSEAL_P12_PASS",
        "PDFSEAL_CERT",
        "PDFSEAL_NAME",
        "PDFSEAL_HOST",
        "PDFSEAL_PORT",
    ):
        monkeypatch.delenv(var, raising=False)
    config_file = tmp_path / "config.json"
    with (
        patch("pdfseal.config._storage.CONFIG_DIR", tmp_path),
        patch("pdfseal.config._storage.CONFIG_FILE", config_file),
        patch("pdfseal.config.credentials.CONFIG_FILE", config_file),
        patch("pdfseal.config.config.CONFIG_FILE", config_file),
        patch("pdfseal.config.credentials._keyring_available", False),
    ):
        yield tmp_path, config_file


@pytest.fixture
def memory_keyring(config_dir):
    """In-memory keyring backend installed for the duration of a test."""
    import keyring
    from keyring.backend import KeyringBackend
    from keyring.errors import PasswordDeleteError

    class MemoryKeyring(KeyringBackend):
        priority = 1

        def __init__(self):
            super().__init__()
            self.store: dict[tuple[str, str], str] = {}

        def get_password(self, service, username):
            return self.store.get((service, username))

        def set_password(self, service, username, password):
            self.store[(service, username)] = password

        def delete_password(self, service, username):
            if (service, username) not in self.store:
                raise PasswordDeleteError("not found")
            del self.store[(service, username)]

    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    try:
        with patch("pdfseal.config.credentials._keyring_available", True):
            yield backend
    finally:
        keyring.set_keyring(previous)
