# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""CMS metadata extraction -- digest algorithm, signing time, and blob inspection."""

from __future__ import annotations

__all__ = [
    "CmsInspection",
    "digest_algorithm_of",
    "extract_digest_algorithm",
    "inspect_cms_blob",
    "resolve_hash_algo",
    "signed_attribute",
]

import hashlib
import logging
from datetime import datetime
from typing import TypedDict

from asn1crypto import cms as asn1_cms

from ..errors import CertificateError
from .cert_info import SignerIdentity, extract_cert_info_from_cms
from .pdf.asn1 import ASN1_SEQUENCE_TAG, MIN_CMS_SIZE

_logger = logging.getLogger(__name__)

# Signature-algorithm identifiers some producers put in the digestAlgorithm field
_DIGEST_ALGO_MAP: dict[str, str] = {
    "sha1_rsa": "sha1",
    "sha256_rsa": "sha256",
    "sha384_rsa": "sha384",
    "sha512_rsa": "sha512",
    "sha256_ecdsa": "sha256",
    "sha384_ecdsa": "sha384",
    "sha512_ecdsa": "sha512",
    "1.2.840.113549.1.1.5": "sha1",  # sha1WithRSAEncryption OID
    "1.2.840.113549.1.1.11": "sha256",  # sha256WithRSAEncryption OID
    "1.2.840.113549.1.1.12": "sha384",  # sha384WithRSAEncryption OID
    "1.2.840.113549.1.1.13": "sha512",  # sha512WithRSAEncryption OID
}


def resolve_hash_algo(algo_raw: str) -> str | None:
    """Resolve a CMS digest algorithm identifier to a hashlib-compatible name.

    Args:
        algo_raw: Algorithm name or OID from asn1crypto (.native or .dotted).

    Returns:
        hashlib algorithm name, or None if unrecognized.
    """
    if algo_raw in hashlib.algorithms_available:
        return algo_raw
    return _DIGEST_ALGO_MAP.get(algo_raw)


def digest_algorithm_of(signer_info: asn1_cms.SignerInfo) -> str | None:
    """hashlib name of a SignerInfo's digest algorithm, or None."""
    algo_id = signer_info["digest_algorithm"]["algorithm"]
    # Try .native first (e.g. "sha256"), then .dotted OID as fallback
    algo_name = resolve_hash_algo(algo_id.native)
    if algo_name is None:
        algo_name = resolve_hash_algo(algo_id.dotted)
    if algo_name is None:
        _logger.debug("Unrecognized digest algorithm: %s (%s)", algo_id.native, algo_id.dotted)
    return algo_name


def extract_digest_algorithm(cms_der: bytes) -> str | None:
    """Digest algorithm of the first SignerInfo of a CMS blob, or None."""
    try:
        content_info = asn1_cms.ContentInfo.load(cms_der)
        signer_infos = content_info["content"]["signer_infos"]
        if not signer_infos:
            return None
        return digest_algorithm_of(signer_infos[0])
    except (ValueError, TypeError, KeyError, AttributeError, IndexError):
        _logger.debug("Could not extract digest algorithm from CMS", exc_info=True)
        return None


def signed_attribute(signer_info: asn1_cms.SignerInfo, name: str) -> object | None:
    """Native value of the first signed attribute called *name*, or None."""
    signed_attrs = signer_info["signed_attrs"]
    if not signed_attrs:
        return None
    for attr in signed_attrs:
        if attr["type"].native == name:
            values = attr["values"]
            if values:
                return values[0].native
    return None


class CmsInspection(TypedDict):
    """Result of inspecting a CMS/PKCS#7 blob (without original data)."""

    signer: SignerIdentity | None
    digest_algorithm: str | None
    signing_time: datetime | None
    cms_size: int
    details: list[str]


def inspect_cms_blob(cms_der: bytes) -> CmsInspection:
    """Inspect a CMS/PKCS#7 blob without verifying it.

    Args:
        cms_der: The CMS/PKCS#7 signature (DER-encoded).

    Returns:
        CmsInspection with signer info, digest algorithm, and details.
    """
    result: CmsInspection = {
        "signer": None,
        "digest_algorithm": None,
        "signing_time": None,
        "cms_size": len(cms_der),
        "details": [],
    }
    details = result["details"]

    if len(cms_der) < MIN_CMS_SIZE:
        details.append(f"CMS too small ({len(cms_der)} bytes) -- likely corrupt")
        return result
    if cms_der[0] != ASN1_SEQUENCE_TAG:
        details.append("Not a valid CMS blob (expected ASN.1 SEQUENCE)")
        return result

    details.append(f"CMS blob: {len(cms_der)} bytes, valid ASN.1 structure")

    try:
        signer = extract_cert_info_from_cms(cms_der)
    except CertificateError as e:
        details.append(f"Signer: unavailable ({e})")
    else:
        result["signer"] = signer
        if signer["name"]:
            details.append(f"Signer: {signer['name']}")
        if signer["organization"]:
            details.append(f"Organization: {signer['organization']}")
        if signer["email"]:
            details.append(f"Email: {signer['email']}")

    try:
        signer_infos = asn1_cms.ContentInfo.load(cms_der)["content"]["signer_infos"]
        if signer_infos:
            digest_algo = digest_algorithm_of(signer_infos[0])
            signing_time = signed_attribute(signer_infos[0], "signing_time")
            if digest_algo:
                result["digest_algorithm"] = digest_algo
                details.append(f"Digest algorithm: {digest_algo.upper().replace('_', '-')}")
            if isinstance(signing_time, datetime):
                result["signing_time"] = signing_time
                details.append(f"Signing time: {signing_time.isoformat()}")
    except (ValueError, TypeError, KeyError, AttributeError):
        _logger.debug("Could not read SignerInfo", exc_info=True)

    return result
