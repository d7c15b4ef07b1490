"""HTTP server command handler for pdfseal CLI."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

from ...config import (
    get_server_config,
    get_signature_defaults,
    get_signing_config,
    load_signing_key,
    load_trust_anchor,
)
from ...errors import SealError
from ...server import create_app

if TYPE_CHECKING:
    import argparse

    from ...core.keys import KeyMaterial

_logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> None:
    """Run the HTTP signing service in the foreground."""
    host, port = get_server_config()
    host = args.host or host
    port = args.port or port

    key: KeyMaterial | None = None
    try:
        if get_signing_config():
            key = load_signing_key()
        trust_anchor = load_trust_anchor()
    except SealError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if key is None:
        _logger.warning("No signing key configured; /upload-and-sign will answer 503")

    app = create_app(key, trust_anchor, get_signature_defaults())
    print(f"pdfseal listening on http://{host}:{port}")
    app.run(host=host, port=port)
