"""
Command-line interface for pdfseal.

Argument parsing and dispatch.  Command handlers live in the sibling
modules.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable

from ...constants import MAX_PORT, MAX_SIGNATURE_BYTES, MIN_PORT, MIN_SIGNATURE_BYTES, __version__
from ...core.pdf import POSITION_PRESETS
from .serve import cmd_serve
from .setup import cmd_reset, cmd_setup
from .sign import cmd_sign
from .verify import cmd_info, cmd_verify


def _bounded_int(low: int, high: int) -> Callable[[str], int]:
    """Build an argparse type that accepts integers in [low, high]."""

    def parse(value: str) -> int:
        try:
            n = int(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
        if not low <= n <= high:
            raise argparse.ArgumentTypeError(f"must be between {low} and {high}")
        return n

    return parse


_signature_bytes = _bounded_int(MIN_SIGNATURE_BYTES, MAX_SIGNATURE_BYTES)
_port = _bounded_int(MIN_PORT, MAX_PORT)


def _configure_logging(verbose: bool, command: str | None) -> None:
    if verbose:
        level = logging.DEBUG
    elif command == "serve":
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdfseal",
        description="Sign PDF documents with embedded PKCS#7 signatures and verify them.",
        epilog=(
            "Environment variables:\n"
            "  PDFSEAL_P12       PKCS#12 bundle used for signing\n"
            "  PDFSEAL_P12_PASS  Passphrase of the bundle\n"
            "  PDFSEAL_CERT      Trusted certificate for verification\n"
            "  PDFSEAL_NAME      Signer name (overrides config from setup)\n"
            "  PDFSEAL_HOST      Server bind address (default: 127.0.0.1)\n"
            "  PDFSEAL_PORT      Server port (default: 3000)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"pdfseal {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=False, help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # sign
    p_sign = sub.add_parser("sign", help="Sign PDF document(s)")
    p_sign.add_argument("files", nargs="+", help="PDF file(s) to sign")
    p_sign.add_argument("-o", "--output", help="Output file path (single file only)")
    p_sign.add_argument("--p12", default=None, help="PKCS#12 bundle (default: from setup)")
    p_sign.add_argument("--reason", default=None, help="Signature reason")
    p_sign.add_argument("--contact", dest="contact_info", default=None, help="Contact info")
    p_sign.add_argument("--location", default=None, help="Signing location")
    p_sign.add_argument(
        "--name", default=None, help="Signer name (default: certificate common name)"
    )
    p_sign.add_argument(
        "-p",
        "--position",
        default=None,
        help=(
            "Appearance position preset (default: bottom-left). "
            f"Presets: {', '.join(sorted(POSITION_PRESETS))}"
        ),
    )
    p_sign.add_argument(
        "--invisible",
        action="store_true",
        default=False,
        help="Create an invisible signature (no text on the page)",
    )
    p_sign.add_argument(
        "--max-signature-bytes",
        type=_signature_bytes,
        default=None,
        help="Bytes reserved for the signature (default: 8192)",
    )

    # verify
    p_verify = sub.add_parser("verify", help="Verify the embedded signature of a PDF")
    p_verify.add_argument("pdf", help="Signed PDF file")
    p_verify.add_argument(
        "--cert", default=None, help="Trusted certificate or public key (PEM/DER)"
    )

    # info
    p_info = sub.add_parser("info", help="Show signature certificate details")
    p_info.add_argument("file", help="Signed PDF or CMS signature file (.p7s)")

    # serve
    p_serve = sub.add_parser("serve", help="Run the HTTP signing service")
    p_serve.add_argument("--host", default=None, help="Bind address")
    p_serve.add_argument("--port", type=_port, default=None, help="Port (default: 3000)")

    # setup
    p_setup = sub.add_parser("setup", help="Configure key files and signature defaults")
    p_setup.add_argument("--p12", default=None, help="PKCS#12 bundle for signing")
    p_setup.add_argument("--cert", default=None, help="Trusted certificate for verification")
    p_setup.add_argument("--name", default=None, help="Signer name")
    p_setup.add_argument("--reason", default=None, help="Default signature reason")
    p_setup.add_argument("--contact", default=None, help="Default contact info")
    p_setup.add_argument("--location", default=None, help="Default signing location")

    # reset
    sub.add_parser("reset", help="Clear all configuration")

    return parser


_COMMANDS = {
    "sign": cmd_sign,
    "verify": cmd_verify,
    "info": cmd_info,
    "serve": cmd_serve,
    "setup": cmd_setup,
    "reset": cmd_reset,
}


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.command)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)
    handler(args)


if __name__ == "__main__":
    main()
