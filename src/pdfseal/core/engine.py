# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Detached CMS/PKCS#7 signatures over a precomputed digest.

:func:`sign_digest` wraps a digest in signed attributes (content type,
signing time, message digest), signs their DER encoding with the signer's
RSA or ECDSA key, and returns a ``SignedData`` ContentInfo.

:func:`verify_signature` checks such a blob against a digest and a trust
anchor.  It never raises: every failure is reported as a
:class:`VerificationReason`.
"""

from __future__ import annotations

__all__ = [
    "VerificationReason",
    "VerificationResult",
    "sign_digest",
    "verify_signature",
]

import enum
import hmac
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypedDict

from asn1crypto import algos, cms, core
from asn1crypto import x509 as asn1_x509
from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from ..constants import DEFAULT_DIGEST_ALGORITHM, SUPPORTED_DIGESTS
from ..errors import SigningError
from .cert_info import SignerIdentity, identity_from_cert
from .cms_info import digest_algorithm_of, signed_attribute

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.types import PublicKeyTypes

    from .keys import KeyMaterial, TrustAnchor

_logger = logging.getLogger(__name__)

_HASHES: dict[str, type[hashes.HashAlgorithm]] = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
}

# UTCTime cannot represent years from 2050 on
_UTC_TIME_LIMIT_YEAR = 2050


class VerificationReason(str, enum.Enum):
    """Why a signature was rejected (``NONE`` when it was accepted)."""

    NONE = "none"
    NO_SIGNATURE_PRESENT = "no_signature_present"
    DIGEST_MISMATCH = "digest_mismatch"
    INVALID_CRYPTOGRAPHIC_SIGNATURE = "invalid_cryptographic_signature"
    UNTRUSTED_CERTIFICATE = "untrusted_certificate"


class VerificationResult(TypedDict):
    """Result of verifying one signature."""

    valid: bool
    reason: VerificationReason
    details: list[str]  # Human-readable messages
    signer: SignerIdentity | None  # Certificate info of the embedded signer
    signing_time: datetime | None


def make_result(
    reason: VerificationReason,
    details: list[str],
    signer: SignerIdentity | None = None,
    signing_time: datetime | None = None,
) -> VerificationResult:
    return {
        "valid": reason is VerificationReason.NONE,
        "reason": reason,
        "details": details,
        "signer": signer,
        "signing_time": signing_time,
    }


# ── Signing ──────────────────────────────────────────────────────────


def _cms_time(moment: datetime) -> cms.Time:
    if moment.year >= _UTC_TIME_LIMIT_YEAR:
        return cms.Time({"generalized_time": core.GeneralizedTime(moment)})
    return cms.Time({"utc_time": core.UTCTime(moment)})


def _asn1_cert(cert: x509.Certificate) -> asn1_x509.Certificate:
    return asn1_x509.Certificate.load(cert.public_bytes(serialization.Encoding.DER))


def sign_digest(
    digest: bytes,
    key: KeyMaterial,
    signing_time: datetime | None = None,
    digest_algorithm: str = DEFAULT_DIGEST_ALGORITHM,
) -> bytes:
    """Produce a detached CMS SignedData over *digest*.

    Args:
        digest: Hash of the signed byte ranges.
        key: Signing key, certificate, and chain.
        signing_time: Value of the signingTime attribute (default: now, UTC).
        digest_algorithm: hashlib name of the algorithm that produced *digest*.

    Returns:
        DER-encoded ContentInfo.

    Raises:
        SigningError: On an unsupported algorithm, a digest of the wrong
            length, or a failure inside the crypto backend.
    """
    if digest_algorithm not in SUPPORTED_DIGESTS:
        raise SigningError(
            f"Unsupported digest algorithm {digest_algorithm!r}. "
            f"Use one of: {', '.join(SUPPORTED_DIGESTS)}"
        )
    hash_algo = _HASHES[digest_algorithm]()
    if len(digest) != hash_algo.digest_size:
        raise SigningError(
            f"Expected {hash_algo.digest_size}-byte {digest_algorithm} digest, "
            f"got {len(digest)} bytes."
        )

    if signing_time is None:
        signing_time = datetime.now(timezone.utc)
    elif signing_time.tzinfo is None:
        signing_time = signing_time.replace(tzinfo=timezone.utc)

    try:
        signer_cert = _asn1_cert(key.certificate)
        # content_type, signing_time, message_digest is already DER SET OF order
        signed_attrs = cms.CMSAttributes(
            [
                cms.CMSAttribute({"type": "content_type", "values": ["data"]}),
                cms.CMSAttribute({"type": "signing_time", "values": [_cms_time(signing_time)]}),
                cms.CMSAttribute({"type": "message_digest", "values": [digest]}),
            ]
        )
        to_sign = signed_attrs.dump()

        private_key = key.private_key
        if isinstance(private_key, rsa.RSAPrivateKey):
            signature = private_key.sign(to_sign, padding.PKCS1v15(), hash_algo)
            signature_algorithm = "rsassa_pkcs1v15"
        elif isinstance(private_key, ec.EllipticCurvePrivateKey):
            signature = private_key.sign(to_sign, ec.ECDSA(hash_algo))
            signature_algorithm = f"{digest_algorithm}_ecdsa"
        else:
            raise SigningError(f"Unsupported key type: {type(private_key).__name__}")

        digest_algo_id = algos.DigestAlgorithm({"algorithm": digest_algorithm})
        signer_info = cms.SignerInfo(
            {
                "version": "v1",
                "sid": cms.SignerIdentifier(
                    {
                        "issuer_and_serial_number": cms.IssuerAndSerialNumber(
                            {
                                "issuer": signer_cert.issuer,
                                "serial_number": signer_cert.serial_number,
                            }
                        )
                    }
                ),
                "digest_algorithm": digest_algo_id,
                "signed_attrs": signed_attrs,
                "signature_algorithm": algos.SignedDigestAlgorithm(
                    {"algorithm": signature_algorithm}
                ),
                "signature": signature,
            }
        )
        certificates = [signer_cert, *(_asn1_cert(c) for c in key.chain)]
        signed_data = cms.SignedData(
            {
                "version": "v1",
                "digest_algorithms": [digest_algo_id],
                "encap_content_info": {"content_type": "data"},
                "certificates": certificates,
                "signer_infos": [signer_info],
            }
        )
        blob = cms.ContentInfo(
            {"content_type": cms.ContentType("signed_data"), "content": signed_data}
        ).dump()
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"Cannot build CMS signature: {e}") from e

    _logger.debug(
        "CMS signature: %d bytes, %s/%s, %d certificate(s)",
        len(blob),
        digest_algorithm,
        signature_algorithm,
        len(certificates),
    )
    return blob


# ── Verification ─────────────────────────────────────────────────────


def _find_signer_cert(
    signed_data: cms.SignedData, signer_info: cms.SignerInfo
) -> asn1_x509.Certificate | None:
    certs = [
        c.chosen
        for c in (signed_data["certificates"] or [])
        if isinstance(c.chosen, asn1_x509.Certificate)
    ]
    sid = signer_info["sid"]
    if sid.name == "issuer_and_serial_number":
        issuer = sid.chosen["issuer"]
        serial = sid.chosen["serial_number"].native
        for cert in certs:
            if cert.serial_number == serial and cert.issuer == issuer:
                return cert
        return None
    key_id = sid.chosen.native
    for cert in certs:
        if cert.key_identifier == key_id:
            return cert
    return None


def _check_signature(
    public_key: PublicKeyTypes,
    signer_info: cms.SignerInfo,
    signed_bytes: bytes,
    digest_algorithm: str,
) -> None:
    """Raise InvalidSignature unless *public_key* verifies the SignerInfo signature."""
    signature = signer_info["signature"].native
    hash_algo = _HASHES[digest_algorithm]()
    sig_algo = signer_info["signature_algorithm"]

    if isinstance(public_key, rsa.RSAPublicKey):
        if sig_algo["algorithm"].native == "rsassa_pss":
            params = sig_algo["parameters"]
            pss_hash = _HASHES[params["hash_algorithm"]["algorithm"].native]()
            pad: padding.AsymmetricPadding = padding.PSS(
                mgf=padding.MGF1(pss_hash), salt_length=params["salt_length"].native
            )
            public_key.verify(signature, signed_bytes, pad, pss_hash)
        else:
            public_key.verify(signature, signed_bytes, padding.PKCS1v15(), hash_algo)
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        public_key.verify(signature, signed_bytes, ec.ECDSA(hash_algo))
    else:
        raise InvalidSignature(f"Unsupported public key type: {type(public_key).__name__}")


def _validity_problem(cert: x509.Certificate, moment: datetime) -> str | None:
    if moment < cert.not_valid_before_utc:
        return f"Trusted certificate not yet valid at {moment.isoformat()}"
    if moment > cert.not_valid_after_utc:
        return f"Trusted certificate expired at {cert.not_valid_after_utc.isoformat()}"
    return None


def verify_signature(
    digest: bytes,
    blob: bytes,
    trusted: TrustAnchor | None,
) -> VerificationResult:
    """Verify a detached CMS blob against *digest* and a trust anchor.

    Checks, in order: the blob parses as SignedData with signed
    attributes; its messageDigest equals *digest*; the signature over the
    signed attributes verifies under the trusted public key; the trusted
    certificate is valid at the signing time.

    Without a trust anchor the signature is checked with the embedded
    signer certificate and reported as UNTRUSTED_CERTIFICATE even when
    intact.

    Never raises; the reason in the result says what failed.
    """
    details: list[str] = []
    if not blob:
        details.append("Signature bytes are absent")
        return make_result(VerificationReason.NO_SIGNATURE_PRESENT, details)
    try:
        return _verify(digest, blob, trusted, details)
    except (ValueError, TypeError, KeyError, AttributeError, IndexError, UnsupportedAlgorithm) as e:
        _logger.debug("Malformed CMS blob", exc_info=True)
        details.append(f"Malformed signature: {e}")
        return make_result(VerificationReason.INVALID_CRYPTOGRAPHIC_SIGNATURE, details)


def _verify(
    digest: bytes,
    blob: bytes,
    trusted: TrustAnchor | None,
    details: list[str],
) -> VerificationResult:
    invalid = VerificationReason.INVALID_CRYPTOGRAPHIC_SIGNATURE

    content_info = cms.ContentInfo.load(blob)
    if content_info["content_type"].native != "signed_data":
        details.append("CMS content is not SignedData")
        return make_result(invalid, details)
    signed_data = content_info["content"]
    signer_infos = signed_data["signer_infos"]
    if not signer_infos:
        details.append("CMS has no SignerInfo")
        return make_result(invalid, details)
    signer_info = signer_infos[0]
    if not signer_info["signed_attrs"]:
        details.append("SignerInfo has no signed attributes")
        return make_result(invalid, details)
    details.append(f"CMS blob: {len(blob)} bytes")

    signer_cert = _find_signer_cert(signed_data, signer_info)
    signer = identity_from_cert(signer_cert) if signer_cert is not None else None
    if signer and signer["name"]:
        details.append(f"Signer: {signer['name']}")

    signing_time = signed_attribute(signer_info, "signing_time")
    if not isinstance(signing_time, datetime):
        signing_time = None

    digest_algorithm = digest_algorithm_of(signer_info)
    if digest_algorithm not in _HASHES:
        details.append(f"Unsupported digest algorithm: {digest_algorithm}")
        return make_result(invalid, details, signer, signing_time)

    message_digest = signed_attribute(signer_info, "message_digest")
    if not isinstance(message_digest, bytes):
        details.append("SignerInfo has no messageDigest attribute")
        return make_result(invalid, details, signer, signing_time)
    algo_upper = digest_algorithm.upper()
    if not hmac.compare_digest(message_digest, digest):
        details.append(
            f"Hash MISMATCH!\n"
            f"  ByteRange {algo_upper}:   {digest.hex()}\n"
            f"  CMS messageDigest:  {message_digest.hex()}"
        )
        return make_result(VerificationReason.DIGEST_MISMATCH, details, signer, signing_time)
    details.append(f"Hash OK -- {algo_upper} matches CMS messageDigest")

    if trusted is not None:
        public_key = trusted.public_key
    elif signer_cert is not None:
        public_key = x509.load_der_x509_certificate(signer_cert.dump()).public_key()
    else:
        details.append("No trusted key and no signer certificate to check the signature with")
        return make_result(invalid, details, signer, signing_time)

    # The signed attributes are signed as an explicit SET OF, not the [0] field
    signed_bytes = signer_info["signed_attrs"].untag().dump(force=True)
    try:
        _check_signature(public_key, signer_info, signed_bytes, digest_algorithm)
    except InvalidSignature:
        details.append("Signature does not verify under the trusted public key")
        return make_result(invalid, details, signer, signing_time)
    details.append("Signature OK")

    if trusted is None:
        details.append("No trusted certificate configured; signer is not trusted")
        return make_result(
            VerificationReason.UNTRUSTED_CERTIFICATE, details, signer, signing_time
        )

    if trusted.certificate is not None:
        moment = signing_time or datetime.now(timezone.utc)
        problem = _validity_problem(trusted.certificate, moment)
        if problem:
            details.append(problem)
            return make_result(
                VerificationReason.UNTRUSTED_CERTIFICATE, details, signer, signing_time
            )
        details.append(f"Trusted certificate: {trusted.subject}")

    return make_result(VerificationReason.NONE, details, signer, signing_time)
