"""
Entry point for `python -m pdfseal`.

Usage:
    python -m pdfseal sign document.pdf
    python -m pdfseal verify document_signed.pdf --cert signer.pem
    python -m pdfseal serve
"""

from .ui.cli import main

main()
