"""pdfseal error types.

Every error carries a stable ``kind`` string so that the HTTP and CLI
boundaries can report it without inspecting the class hierarchy.
"""

from __future__ import annotations

__all__ = [
    "CertificateError",
    "ConfigError",
    "MalformedDocument",
    "PDFError",
    "PlaceholderNotFound",
    "SealError",
    "SignatureTooLarge",
    "SigningError",
]


class SealError(Exception):
    """Base error for pdfseal operations."""

    kind = "error"


class PDFError(SealError):
    """PDF structure, parsing, or building error."""

    kind = "pdf_error"


class MalformedDocument(PDFError):
    """Input is not a PDF or its structure cannot be read."""

    kind = "malformed_document"


class PlaceholderNotFound(PDFError):
    """The signature placeholder is missing or its delimiters are displaced."""

    kind = "placeholder_not_found"


class SignatureTooLarge(PDFError):
    """The encoded signature does not fit in the reserved /Contents span.

    Args:
        message: Human-readable error description.
        required: Hex characters needed for the signature.
        reserved: Hex characters available in the placeholder.
    """

    kind = "signature_too_large"

    def __init__(self, message: str, *, required: int = 0, reserved: int = 0) -> None:
        super().__init__(message)
        self.required = required
        self.reserved = reserved

    def __reduce__(self) -> tuple[type[SignatureTooLarge], tuple[str], dict[str, int]]:
        """Preserve sizes across pickle/unpickle."""
        return (type(self), (str(self),), {"required": self.required, "reserved": self.reserved})

    def __setstate__(self, state: dict[str, int] | None) -> None:
        if state is None:
            return
        self.required = state.get("required", 0)
        self.reserved = state.get("reserved", 0)


class SigningError(SealError):
    """The cryptographic signing operation failed."""

    kind = "signing_error"


class CertificateError(SealError):
    """Key material or certificate parsing error."""

    kind = "certificate_error"


class ConfigError(SealError):
    """Configuration is missing or invalid."""

    kind = "config_error"
