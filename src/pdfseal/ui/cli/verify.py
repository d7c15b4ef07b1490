# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""
Signature verification and inspection.

cmd_verify checks the embedded signature of a PDF against a trusted
certificate.  cmd_info lists the certificates carried by a signature,
either embedded in a PDF or in a detached .p7s file.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...config import load_trust_anchor
from ...constants import PDF_MAGIC
from ...core.cert_info import list_cms_certificates
from ...core.cms_info import inspect_cms_blob
from ...core.pdf import extract_embedded_signature
from ...core.verification import verify_pdf
from ...errors import PDFError, SealError
from ..helpers import format_size, read_input

if TYPE_CHECKING:
    import argparse


def cmd_verify(args: argparse.Namespace) -> None:
    """Verify the embedded signature of a PDF."""
    pdf_path = Path(args.pdf)
    try:
        pdf_bytes = read_input(pdf_path, "PDF")
        trusted = load_trust_anchor(args.cert)
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Verifying {pdf_path.name} ({format_size(len(pdf_bytes))})...")
    if trusted is None:
        print("  Warning: no trusted certificate configured (use --cert)", file=sys.stderr)

    try:
        result = verify_pdf(pdf_bytes, trusted)
    except SealError as e:
        print(f"  ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    for line in result["details"]:
        for part in line.splitlines():
            print(f"  {part}")

    print()
    if result["valid"]:
        print("  RESULT: Signature VALID")
    else:
        print(f"  RESULT: Signature INVALID ({result['reason'].value})")
        sys.exit(1)


def _load_cms(path: Path, data: bytes) -> bytes:
    if not data.startswith(PDF_MAGIC):
        return data
    embedded = extract_embedded_signature(data)
    if embedded is None or embedded.is_empty:
        raise PDFError(f"No signature found in {path.name}")
    return embedded.cms_der


def cmd_info(args: argparse.Namespace) -> None:
    """Show the certificates of an embedded or detached signature."""
    sig_path = Path(args.file)
    try:
        cms_der = _load_cms(sig_path, read_input(sig_path, "Signature file"))
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    inspection = inspect_cms_blob(cms_der)
    print(f"Signature: {sig_path.name} ({inspection['cms_size']} bytes of CMS)")
    for line in inspection["details"]:
        print(f"  {line}")

    try:
        certs = list_cms_certificates(cms_der)
    except SealError as e:
        print(f"  Error parsing signature: {e}", file=sys.stderr)
        sys.exit(1)
    if not certs:
        print("  No certificates found in signature.")
        return

    cert_count = len(certs)
    print(f"\nCertificates ({cert_count}):")
    for i, cert in enumerate(certs):
        if cert_count > 1:
            print(f"\n  [{i + 1}]")
        print(f"  Subject: {cert.subject.human_friendly}")
        print(f"  Issuer:  {cert.issuer.human_friendly}")
        print(f"  Serial:  {cert.serial_number}")
        print(
            f"  Valid:   {cert['tbs_certificate']['validity']['not_before'].native}"
            f" - {cert['tbs_certificate']['validity']['not_after'].native}"
        )
