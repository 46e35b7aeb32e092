#!/usr/bin/env python
"""Submit one goods-introduction document to the labeling registry.

Run from the project root::

    CRPT_API_TOKEN=... python scripts/submit_document.py \\
        --document doc.json --signature-file doc.sig --product-group milk

The document file holds the document JSON object using the registry's
field names.  The client is built from ``CRPT_*`` environment variables
(see :class:`crpt_api.config.settings.CrptSettings`).  The registry reply is
printed to stdout as JSON.

Exit codes:
    0 - The registry answered with a 2xx status.
    1 - The registry rejected the document (non-2xx reply).
    2 - Invalid input, configuration, or a network failure.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

# Ensure the src layout is on sys.path when run as a standalone script.
_SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
_SRC_DIR = os.path.join(os.path.dirname(_SCRIPT_DIR), "src")
if _SRC_DIR not in sys.path:
    sys.path.insert(0, _SRC_DIR)


async def _run(
    document_path: Path,
    signature: str | None,
    signature_path: Path | None,
    product_group: str,
) -> int:
    """Submit the document and print the reply.

    Exactly one of *signature* and *signature_path* is set.

    Returns:
        Process exit code.
    """
    from pydantic import ValidationError  # noqa: PLC0415

    from crpt_api.client import CrptApiClient  # noqa: PLC0415
    from crpt_api.config.settings import get_settings  # noqa: PLC0415
    from crpt_api.core.exceptions import CrptApiError  # noqa: PLC0415
    from crpt_api.core.logging_config import configure_logging  # noqa: PLC0415
    from crpt_api.core.schemas import Document  # noqa: PLC0415

    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        document = Document.model_validate_json(document_path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        print(f"ERROR: cannot read document {document_path}: {exc}", file=sys.stderr)
        return 2

    if signature_path is not None:
        try:
            signature = signature_path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            print(f"ERROR: cannot read signature {signature_path}: {exc}", file=sys.stderr)
            return 2

    try:
        async with CrptApiClient.from_settings(settings) as api:
            reply = await api.submit(document, signature, product_group)
    except CrptApiError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    print(reply.model_dump_json(exclude_none=True))
    return 1 if reply.rejected else 0


def main() -> None:
    """Parse arguments and run the submission."""
    parser = argparse.ArgumentParser(
        description="Submit a goods-introduction document to the labeling registry."
    )
    parser.add_argument(
        "--document",
        required=True,
        type=Path,
        help="Path to the document JSON file.",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--signature", help="Detached signature, as text.")
    group.add_argument(
        "--signature-file",
        type=Path,
        help="Path to a file holding the detached signature.",
    )
    parser.add_argument(
        "--product-group",
        required=True,
        help="Product group tag (e.g. 'milk', 'shoes').",
    )
    args = parser.parse_args()

    sys.exit(
        asyncio.run(
            _run(args.document, args.signature, args.signature_file, args.product_group)
        )
    )


if __name__ == "__main__":
    main()
