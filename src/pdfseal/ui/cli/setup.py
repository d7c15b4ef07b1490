"""Setup and reset command handlers for pdfseal CLI."""

from __future__ import annotations

import getpass
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ...config import (
    CONFIG_FILE,
    get_passphrase_storage_info,
    get_signature_defaults,
    get_signing_config,
    get_trust_config,
    is_keyring_available,
    reset_all,
    save_passphrase,
    save_signature_defaults,
    save_signing_config,
)
from ...constants import ENV_P12, ENV_P12_PASS
from ...core.keys import load_pkcs12, load_trust_anchor
from ...errors import SealError
from ..helpers import ask, ask_yes_no, read_input

if TYPE_CHECKING:
    import argparse


def _prompt_passphrase(p12_path: Path) -> str:
    try:
        return getpass.getpass(f"Passphrase for {p12_path.name}: ")
    except (EOFError, KeyboardInterrupt):
        print()
        sys.exit(1)


def _print_current() -> None:
    p12 = get_signing_config()
    cert = get_trust_config()
    if not p12 and not cert:
        return
    meta = get_signature_defaults()
    print("Current configuration:")
    if p12:
        print(f"  PKCS#12:      {p12}")
    if cert:
        print(f"  Trusted cert: {cert}")
    if meta.name:
        print(f"  Name:         {meta.name}")
    print(f"  Reason:       {meta.reason}")
    print(f"  Config file:  {CONFIG_FILE}")
    print()


def _setup_pkcs12(p12_arg: str | None) -> str | None:
    """Validate the bundle (prompting for its path and passphrase) and store both."""
    path_str = p12_arg or ask("PKCS#12 bundle (.p12/.pfx) for signing (empty to skip): ")
    if not path_str:
        return None
    p12_path = Path(path_str).expanduser().resolve()
    try:
        data = read_input(p12_path, "PKCS#12 bundle")
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    passphrase = _prompt_passphrase(p12_path)
    try:
        key = load_pkcs12(data, passphrase)
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"  Key OK: {key.certificate.subject.rfc4514_string()}")

    if ask_yes_no("Save the passphrase for future use?"):
        save_passphrase(str(p12_path), passphrase)
        print(f"  Passphrase saved to: {get_passphrase_storage_info()}")
        if not is_keyring_available():
            print("  No system keychain available; the config file is readable only by you.")
    else:
        save_signing_config(pkcs12_path=str(p12_path))
        print(f"  Passphrase not saved; set {ENV_P12_PASS} when signing.")
    return key.signer_name


def _setup_certificate(cert_arg: str) -> None:
    cert_path = Path(cert_arg).expanduser().resolve()
    try:
        anchor = load_trust_anchor(read_input(cert_path, "Certificate"))
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    save_signing_config(certificate_path=str(cert_path))
    print(f"  Trusted certificate: {anchor.subject or 'public key'}")


def cmd_setup(args: argparse.Namespace) -> None:
    """Store key locations, passphrase, and signature defaults."""
    print("pdfseal setup")
    print("=" * 40)
    print()
    _print_current()

    cn = _setup_pkcs12(args.p12)
    if args.cert:
        _setup_certificate(args.cert)

    save_signature_defaults(
        name=args.name,
        reason=args.reason,
        contact_info=args.contact,
        location=args.location,
    )

    meta = get_signature_defaults()
    print(f"\nSaved to {CONFIG_FILE}")
    print(f"  Signer:  {meta.name or cn or '(certificate common name)'}")
    print(f"  Reason:  {meta.reason}")
    print(f"Override anytime with {ENV_P12} / {ENV_P12_PASS} env variables.")


def cmd_reset(_args: argparse.Namespace) -> None:
    """Clear all configuration, including the stored passphrase."""
    reset_all()
    print("All configuration cleared.")
    print("Run 'pdfseal setup' to reconfigure.")
