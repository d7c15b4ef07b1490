"""Routes: /upload-and-sign, /validate-pdf, /health."""

from __future__ import annotations

__all__ = ["bp"]

import io
import logging
from typing import TYPE_CHECKING

from flask import Blueprint, jsonify, request, send_file
from werkzeug.utils import secure_filename

from ..core.engine import VerificationReason
from ..core.signing import sign_pdf
from ..core.verification import verify_pdf
from ..errors import MalformedDocument, SealError
from . import get_context

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue
    from werkzeug.datastructures import FileStorage

_logger = logging.getLogger(__name__)

bp = Blueprint("pdfseal", __name__)

_UPLOAD_FIELD = "document"
_PDF_MEDIA_TYPE = "application/pdf"

_NO_PDF_MESSAGE = "No file uploaded or file is not a PDF."

REASON_MESSAGES: dict[VerificationReason, str] = {
    VerificationReason.NONE: (
        "The signature is valid. The document is authentic and has not been altered."
    ),
    VerificationReason.NO_SIGNATURE_PRESENT: "No signature found in the PDF.",
    VerificationReason.DIGEST_MISMATCH: (
        "The signature is invalid. The document was altered after it was signed."
    ),
    VerificationReason.INVALID_CRYPTOGRAPHIC_SIGNATURE: (
        "The signature is invalid. It was not produced by the trusted key."
    ),
    VerificationReason.UNTRUSTED_CERTIFICATE: (
        "The signature is intact but the signing certificate is not trusted."
    ),
}


def _uploaded_pdf() -> FileStorage | None:
    upload = request.files.get(_UPLOAD_FIELD)
    if upload is None or upload.mimetype != _PDF_MEDIA_TYPE:
        return None
    return upload


def _error(message: str, status: int, kind: str | None = None) -> ResponseReturnValue:
    body: dict[str, str] = {"message": message}
    if kind is not None:
        body["error"] = kind
    return jsonify(body), status


@bp.post("/upload-and-sign")
def upload_and_sign() -> ResponseReturnValue:
    upload = _uploaded_pdf()
    if upload is None:
        return _error(_NO_PDF_MESSAGE, 400)

    ctx = get_context()
    if ctx.key is None:
        return _error("Signing key is not configured.", 503, "config_error")

    filename = secure_filename(upload.filename or "") or "document.pdf"
    pdf_bytes = upload.read()
    try:
        signed = sign_pdf(pdf_bytes, ctx.key, ctx.metadata)
    except MalformedDocument as e:
        return _error(str(e), 400, e.kind)
    except SealError as e:
        _logger.exception("Signing %s failed", filename)
        return _error(str(e), 500, e.kind)

    _logger.info("Signed %s: %d -> %d bytes", filename, len(pdf_bytes), len(signed))
    return send_file(
        io.BytesIO(signed),
        mimetype=_PDF_MEDIA_TYPE,
        as_attachment=True,
        download_name=filename,
    )


@bp.post("/validate-pdf")
def validate_pdf() -> ResponseReturnValue:
    upload = _uploaded_pdf()
    if upload is None:
        return _error(_NO_PDF_MESSAGE, 400)

    ctx = get_context()
    try:
        result = verify_pdf(upload.read(), ctx.trust_anchor)
    except MalformedDocument as e:
        return _error(str(e), 400, e.kind)

    reason = result["reason"]
    signing_time = result["signing_time"]
    body = {
        "valid": result["valid"],
        "reason": reason.value,
        "message": REASON_MESSAGES[reason],
        "signer": result["signer"],
        "signing_time": signing_time.isoformat() if signing_time else None,
        "details": result["details"],
    }
    return jsonify(body), 200 if result["valid"] else 400


@bp.get("/health")
def health() -> ResponseReturnValue:
    ctx = get_context()
    return jsonify(
        {
            "status": "ok",
            "signing": ctx.key is not None,
            "verification": ctx.trust_anchor is not None,
        }
    )
