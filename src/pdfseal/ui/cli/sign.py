"""Signing command handler for pdfseal CLI."""

from __future__ import annotations

import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from ...config import get_signature_defaults, load_signing_key
from ...core.signing import sign_pdf
from ...errors import SealError
from ..helpers import default_output_path, format_size, read_input, write_output

if TYPE_CHECKING:
    import argparse

    from ...core.keys import KeyMaterial
    from ...core.pdf import SignatureMetadata


def _resolve_metadata(args: argparse.Namespace) -> SignatureMetadata:
    """Saved defaults with command-line overrides applied."""
    meta = get_signature_defaults()
    overrides: dict[str, object] = {}
    for attr in ("reason", "contact_info", "location", "name", "position", "max_signature_bytes"):
        value = getattr(args, attr, None)
        if value is not None:
            overrides[attr] = value
    if getattr(args, "invisible", False):
        overrides["visible"] = False
    return replace(meta, **overrides) if overrides else meta


def _sign_one(
    pdf_path_str: str,
    output_path: str | None,
    key: KeyMaterial,
    meta: SignatureMetadata,
) -> bool:
    """Sign a single PDF and print progress.  Returns True on success."""
    pdf_path = Path(pdf_path_str)

    try:
        pdf_bytes = read_input(pdf_path, "PDF")
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        return False

    out = Path(output_path) if output_path else default_output_path(pdf_path)
    print(f"  Signing {pdf_path.name} ({format_size(len(pdf_bytes))})...", end=" ", flush=True)

    try:
        signed = sign_pdf(pdf_bytes, key, meta)
        write_output(out, signed)
    except SealError as e:
        print("FAILED", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        return False
    except OSError as e:
        print("FAILED", file=sys.stderr)
        print(f"  Cannot write {out}: {e}", file=sys.stderr)
        return False

    print(f"OK -> {out.name} ({format_size(len(signed))})")
    return True


def cmd_sign(args: argparse.Namespace) -> None:
    """Handle the 'sign' subcommand."""
    files = args.files
    if args.output and len(files) > 1:
        print("Error: -o/--output can only be used with a single input file.", file=sys.stderr)
        sys.exit(1)

    try:
        key = load_signing_key(args.p12)
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    meta = _resolve_metadata(args)
    signer = meta.name or key.signer_name or "unknown signer"
    print(f"Signing as {signer}")

    failed = 0
    for pdf_file in files:
        if not _sign_one(pdf_file, args.output, key, meta):
            failed += 1

    if len(files) > 1:
        print(f"\n{len(files) - failed} of {len(files)} file(s) signed.")
    if failed:
        sys.exit(1)
