"""ASN.1/DER helpers for recovering a signature from a padded /Contents string."""

from __future__ import annotations

__all__ = [
    "ASN1_SEQUENCE_TAG",
    "MIN_CMS_SIZE",
    "der_length",
    "extract_der_from_padded_hex",
]

# ASN.1 SEQUENCE tag -- first byte of any valid CMS/PKCS#7 blob
ASN1_SEQUENCE_TAG = 0x30

# Upper bound on a declared blob size (16 MB DER).
_MAX_DER_BYTES = 16 * 1024 * 1024

# Minimum plausible CMS blob size in bytes (header + basic content)
MIN_CMS_SIZE = 100


def der_length(header: bytes) -> int:
    """Return the total encoded size (header + content) of a DER SEQUENCE.

    Only the first few bytes are inspected, so *header* may be a prefix of
    a longer buffer.

    Raises:
        ValueError: If the header is not a definite-length SEQUENCE.
    """
    if len(header) < 2:
        raise ValueError("Too short for an ASN.1 TLV header")
    if header[0] != ASN1_SEQUENCE_TAG:
        raise ValueError(f"Expected ASN.1 SEQUENCE (0x30), got 0x{header[0]:02x}")

    first = header[1]
    if first < 0x80:
        return 2 + first
    if first == 0x80:
        raise ValueError("Indefinite length encoding is not valid in DER")

    num_len_bytes = first & 0x7F
    if num_len_bytes > 4:
        raise ValueError(f"ASN.1 length field too large: {num_len_bytes} bytes")
    if len(header) < 2 + num_len_bytes:
        raise ValueError("Too short for the ASN.1 length field")
    content_len = int.from_bytes(header[2 : 2 + num_len_bytes], "big")
    total = 2 + num_len_bytes + content_len
    if total > _MAX_DER_BYTES:
        raise ValueError(f"ASN.1 claims {total} bytes, exceeds maximum ({_MAX_DER_BYTES} bytes)")
    return total


def extract_der_from_padded_hex(hex_str: str) -> bytes:
    """Extract the exact DER blob from a zero-padded hex string.

    The length comes from the ASN.1 header rather than from stripping
    trailing zeros, which would corrupt blobs ending in 0x00 bytes.

    Raises:
        ValueError: If the hex is invalid or the header is malformed.
    """
    if len(hex_str) < 4:
        raise ValueError("Hex string too short for ASN.1 TLV header")
    # Six header bytes cover every length form accepted by der_length
    header = bytes.fromhex(hex_str[: min(len(hex_str), 12) // 2 * 2])
    total = der_length(header)
    if total * 2 > len(hex_str):
        raise ValueError(
            f"ASN.1 length ({total} bytes) exceeds available hex data ({len(hex_str) // 2} bytes)"
        )
    return bytes.fromhex(hex_str[: total * 2])
