# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Signer identity extraction from CMS/PKCS#7 blobs, X.509 certificates, and signed PDFs.

Pure data-parsing functions used by verification results, the ``info``
command, and the HTTP responses.
"""

from __future__ import annotations

__all__ = [
    "SignerIdentity",
    "identity_from_cert",
    "extract_cert_info_from_cms",
    "extract_cert_info_from_pdf",
    "extract_cert_info_from_x509",
    "list_cms_certificates",
]

import datetime
import logging
from typing import TypedDict

from asn1crypto import cms as asn1_cms
from asn1crypto import x509 as asn1_x509

from ..errors import CertificateError, PDFError
from .pdf.extraction import extract_embedded_signature

_logger = logging.getLogger(__name__)

# OIDs for common subject fields
_OID_CN = "2.5.4.3"
_OID_EMAIL = "1.2.840.113549.1.9.1"
_OID_ORG = "2.5.4.10"


class SignerIdentity(TypedDict):
    """Who signed: subject fields of the signing certificate."""

    name: str | None
    email: str | None
    organization: str | None
    dn: str


def identity_from_cert(cert: asn1_x509.Certificate) -> SignerIdentity:
    """Extract CN, email, org, dn from an asn1crypto certificate object.

    Also logs warnings for expired or not-yet-valid certificates.
    """
    try:
        not_before = cert.not_valid_before
        not_after = cert.not_valid_after
        now = datetime.datetime.now(datetime.timezone.utc)
        if not_before and now < not_before:
            _logger.warning("Certificate is not yet valid (notBefore: %s)", not_before)
        elif not_after and now > not_after:
            _logger.warning("Certificate has expired (notAfter: %s)", not_after)
    except (KeyError, TypeError, ValueError) as e:
        _logger.debug("Cannot check certificate validity dates: %s", e)

    fields: dict[str, str | None] = {"name": None, "email": None, "organization": None}
    oid_map = {_OID_CN: "name", _OID_EMAIL: "email", _OID_ORG: "organization"}

    for rdn in cert.subject.chosen:
        for attr in rdn:
            oid = attr["type"].dotted
            if oid in oid_map:
                fields[oid_map[oid]] = attr["value"].native

    return {
        "name": fields["name"],
        "email": fields["email"],
        "organization": fields["organization"],
        "dn": cert.subject.human_friendly,
    }


def _load_signed_data(cms_der: bytes) -> asn1_cms.SignedData:
    try:
        content_info = asn1_cms.ContentInfo.load(cms_der)
        if content_info["content_type"].native != "signed_data":
            raise CertificateError("CMS blob does not contain SignedData.")
        return content_info["content"]
    except (ValueError, TypeError, KeyError, OSError) as e:
        raise CertificateError(f"Failed to parse CMS/PKCS#7 blob: {e}") from e


def list_cms_certificates(cms_der: bytes) -> list[asn1_x509.Certificate]:
    """Return every X.509 certificate carried in a CMS blob.

    Raises:
        CertificateError: If the blob cannot be parsed.
    """
    signed_data = _load_signed_data(cms_der)
    certs = signed_data["certificates"]
    if not certs:
        return []
    return [c.chosen for c in certs if isinstance(c.chosen, asn1_x509.Certificate)]


def extract_cert_info_from_cms(cms_der: bytes) -> SignerIdentity:
    """
    Extract signer certificate info from a CMS/PKCS#7 DER blob.

    The certificate matching the first SignerInfo's issuer and serial is
    preferred; otherwise the first certificate is used.

    Raises:
        CertificateError: If parsing fails or no certificate is present.
    """
    signed_data = _load_signed_data(cms_der)
    certs = list_cms_certificates(cms_der)
    if not certs:
        raise CertificateError("No certificate subject found in CMS blob.")

    signer_infos = signed_data["signer_infos"]
    if signer_infos:
        sid = signer_infos[0]["sid"]
        if sid.name == "issuer_and_serial_number":
            issuer = sid.chosen["issuer"]
            serial = sid.chosen["serial_number"].native
            for cert in certs:
                if cert.serial_number == serial and cert.issuer == issuer:
                    return identity_from_cert(cert)
    return identity_from_cert(certs[0])


def extract_cert_info_from_x509(cert_der: bytes) -> SignerIdentity:
    """
    Extract signer info from a raw DER-encoded X.509 certificate.

    Raises:
        CertificateError: If parsing fails.
    """
    try:
        cert = asn1_x509.Certificate.load(cert_der)
    except (ValueError, TypeError, OSError) as e:
        raise CertificateError(f"Failed to parse X.509 certificate: {e}") from e

    return identity_from_cert(cert)


def extract_cert_info_from_pdf(pdf_bytes: bytes) -> SignerIdentity:
    """
    Extract signer certificate info from the most recent signature of a PDF.

    Raises:
        CertificateError: If the PDF has no signature or parsing fails.
    """
    try:
        embedded = extract_embedded_signature(pdf_bytes)
    except PDFError as e:
        raise CertificateError(f"Cannot read the embedded signature: {e}") from e
    if embedded is None or embedded.is_empty:
        raise CertificateError("No embedded signature found in this PDF.")
    return extract_cert_info_from_cms(embedded.cms_der)
