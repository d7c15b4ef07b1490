"""
Terminal and file helpers shared by the pdfseal commands.

File problems surface as :class:`~pdfseal.errors.ConfigError` so the
command handlers report them the same way as a bad config entry.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

from ..errors import ConfigError

__all__ = [
    "ask",
    "ask_yes_no",
    "default_output_path",
    "format_size",
    "read_input",
    "write_output",
]

_UNITS = ("B", "KB", "MB", "GB")
_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no"})


def format_size(size_bytes: int) -> str:
    """Human-readable size: '812 B', '12.5 KB', '3.1 MB'."""
    size = float(size_bytes)
    for unit in _UNITS[:-1]:
        if size < 1024:
            break
        size /= 1024
    else:
        unit = _UNITS[-1]
    return f"{size_bytes} B" if unit == "B" else f"{size:.1f} {unit}"


def default_output_path(pdf_path: Path) -> Path:
    """'<stem>_signed.pdf' next to the input."""
    return pdf_path.with_name(f"{pdf_path.stem}_signed.pdf")


def read_input(path: Path, kind: str) -> bytes:
    """
    Read a PDF, key, or certificate named on the command line.

    Raises:
        ConfigError: If *path* is missing, is a directory, or cannot be read.
    """
    if not path.exists():
        raise ConfigError(f"{kind} not found: {path}")
    if path.is_dir():
        raise ConfigError(f"{kind} is a directory: {path}")
    try:
        return path.read_bytes()
    except OSError as e:
        raise ConfigError(f"Cannot read {kind} {path}: {e}") from e


def write_output(path: Path, data: bytes) -> None:
    """Replace *path* with *data* through a hidden sibling file.

    Readers see either the previous file or the complete new one; the
    partial file is removed when the write fails or is interrupted.
    """
    tmp = tempfile.NamedTemporaryFile(  # noqa: SIM115
        dir=path.parent, prefix=f".{path.name}.", suffix=".part", delete=False
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def ask(prompt: str) -> str | None:
    """Read one stripped line; None when the user cancels (Ctrl-C, Ctrl-D)."""
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print(file=sys.stderr)
        return None


def ask_yes_no(question: str, default: bool = True) -> bool:
    """Ask until the answer is yes, no, or empty (*default*).

    Cancelling counts as no.
    """
    hint = "[Y/n]" if default else "[y/N]"
    while True:
        answer = ask(f"{question} {hint} ")
        if answer is None:
            return False
        answer = answer.lower()
        if not answer:
            return default
        if answer in _YES:
            return True
        if answer in _NO:
            return False
        print("  Please answer y or n.")
