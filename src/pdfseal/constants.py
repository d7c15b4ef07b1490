"""
Application-wide constants for pdfseal.

Size limits, defaults, environment variable names, and other magic
numbers are centralized here for easy maintenance and configuration.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("pdfseal")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.3.0"

__all__ = [
    "BYTES_PER_MB",
    "CMS_RESERVED_SIZE",
    "DEFAULT_CONTACT_INFO",
    "DEFAULT_DIGEST_ALGORITHM",
    "DEFAULT_HOST",
    "DEFAULT_LOCATION",
    "DEFAULT_PORT",
    "DEFAULT_POSITION",
    "DEFAULT_REASON",
    "ENV_CERT",
    "ENV_HOST",
    "ENV_NAME",
    "ENV_P12",
    "ENV_P12_PASS",
    "ENV_PORT",
    "MAX_PORT",
    "MAX_SIGNATURE_BYTES",
    "MAX_UPLOAD_SIZE",
    "MIN_PORT",
    "MIN_SIGNATURE_BYTES",
    "PDF_MAGIC",
    "SUPPORTED_DIGESTS",
    "__version__",
]


# ── Size units ────────────────────────────────────────────────────────

BYTES_PER_MB = 1024 * 1024


# ── Signature reservation ─────────────────────────────────────────────

# Bytes reserved for the DER signature; the /Contents hex string is twice as long.
# An RSA-4096 signature with a three-certificate chain fits comfortably.
CMS_RESERVED_SIZE = 8192

# Accepted range for a configured reservation
MIN_SIGNATURE_BYTES = 1024
MAX_SIGNATURE_BYTES = 64 * 1024


# ── Size limits (bytes) ───────────────────────────────────────────────

# Upload limit enforced by the HTTP server (50 MB)
MAX_UPLOAD_SIZE = 50 * BYTES_PER_MB


# ── Crypto defaults ───────────────────────────────────────────────────

DEFAULT_DIGEST_ALGORITHM = "sha256"
SUPPORTED_DIGESTS = ("sha256", "sha384", "sha512")


# ── Signature dictionary defaults ─────────────────────────────────────

DEFAULT_REASON = "The user is declaring consent to this document."
DEFAULT_CONTACT_INFO = ""
DEFAULT_LOCATION = ""

# Appearance preset; the visible text is drawn near the lower-left corner
DEFAULT_POSITION = "bottom-left"


# ── Server defaults ───────────────────────────────────────────────────

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
MIN_PORT = 1
MAX_PORT = 65535


# ── Environment variable names ──────────────────────────────────────

ENV_P12 = "PDFSEAL_P12"
ENV_P12_PASS = "PDFSEAL_P12_PASS"
ENV_CERT = "PDFSEAL_CERT"
ENV_NAME = "PDFSEAL_NAME"
ENV_HOST = "PDFSEAL_HOST"
ENV_PORT = "PDFSEAL_PORT"


# PDF file magic bytes
PDF_MAGIC = b"%PDF-"
