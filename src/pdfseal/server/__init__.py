"""
HTTP boundary: a Flask application exposing signing and verification.

Key material is loaded once, in :func:`create_app`, and stored on the
application as an immutable :class:`ServerContext`; every request reads
it from there.
"""

from __future__ import annotations

__all__ = [
    "ServerContext",
    "create_app",
    "get_context",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from ..constants import MAX_UPLOAD_SIZE
from ..core.pdf import SignatureMetadata

if TYPE_CHECKING:
    from flask.typing import ResponseReturnValue

    from ..core.keys import KeyMaterial, TrustAnchor

_logger = logging.getLogger(__name__)

_EXTENSION_KEY = "pdfseal"


@dataclass(frozen=True)
class ServerContext:
    """Everything a request needs, fixed at startup.

    Attributes:
        key: Signing key, or None when signing is not configured.
        trust_anchor: Verification anchor, or None (signatures are then
            reported as untrusted).
        metadata: Signature dictionary fields used for every signature.
    """

    key: KeyMaterial | None
    trust_anchor: TrustAnchor | None
    metadata: SignatureMetadata


def get_context() -> ServerContext:
    """The :class:`ServerContext` of the current application."""
    return current_app.extensions[_EXTENSION_KEY]


def _too_large(error: RequestEntityTooLarge) -> ResponseReturnValue:
    limit = current_app.config.get("MAX_CONTENT_LENGTH")
    return jsonify({"message": f"Upload exceeds the {limit}-byte limit.", "error": "too_large"}), 413


def create_app(
    key_material: KeyMaterial | None = None,
    trust_anchor: TrustAnchor | None = None,
    metadata: SignatureMetadata | None = None,
    *,
    max_content_length: int = MAX_UPLOAD_SIZE,
) -> Flask:
    """Build the Flask application.

    Args:
        key_material: Signing key; ``/upload-and-sign`` answers 503 without it.
        trust_anchor: Certificate signatures are verified against.  When
            omitted and *key_material* is given, its certificate is used.
        metadata: Signature fields (default: :class:`SignatureMetadata` defaults).
        max_content_length: Upload size limit in bytes.
    """
    from ..core.keys import TrustAnchor
    from .routes import bp

    if trust_anchor is None and key_material is not None:
        trust_anchor = TrustAnchor.from_certificate(key_material.certificate)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = max_content_length
    app.extensions[_EXTENSION_KEY] = ServerContext(
        key=key_material,
        trust_anchor=trust_anchor,
        metadata=metadata if metadata is not None else SignatureMetadata(),
    )
    app.register_blueprint(bp)
    app.register_error_handler(RequestEntityTooLarge, _too_large)

    _logger.info(
        "pdfseal app ready: signing=%s, verification=%s, upload limit=%d bytes",
        key_material is not None,
        trust_anchor is not None,
        max_content_length,
    )
    return app
