"""Build the wire envelope for a goods-introduction submission.

Pure functions only: no network access and no shared state.  The same
inputs always produce the same envelope, because pydantic emits keys in
field-declaration order.

Typical usage::

    envelope = build_envelope(document, signature="...", product_group="milk")
    body = envelope.model_dump_json()
"""

from __future__ import annotations

import base64
import json
from typing import Any

from crpt_api.core.exceptions import MissingArgumentError
from crpt_api.core.schemas import Document, SubmissionEnvelope


def require_present(**arguments: Any) -> None:
    """Raise when any keyword argument is ``None``.

    Args:
        **arguments: Argument names mapped to the values the caller supplied.

    Raises:
        MissingArgumentError: Naming every absent argument, in call order.
    """
    missing = tuple(name for name, value in arguments.items() if value is None)
    if missing:
        raise MissingArgumentError(missing)


def serialize_document(document: Document) -> str:
    """Return the canonical JSON text of *document*.

    Keys use the registry's wire names and unset fields are omitted, so a
    document with only ``production_date`` set serializes to
    ``{"production_date": "..."}``.
    """
    return document.model_dump_json(by_alias=True, exclude_none=True)


def encode_document(document: Document) -> str:
    """Return standard base64 of the UTF-8 encoded canonical document JSON."""
    raw = serialize_document(document).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def build_envelope(
    document: Document,
    signature: str,
    product_group: str,
) -> SubmissionEnvelope:
    """Wrap *document* in the envelope expected by the creation endpoint.

    Args:
        document: The document to submit.
        signature: Detached signature, copied verbatim.
        product_group: Product group tag, copied verbatim.

    Returns:
        The populated :class:`SubmissionEnvelope`.

    Raises:
        MissingArgumentError: If any argument is ``None``.
    """
    require_present(
        document=document,
        signature=signature,
        product_group=product_group,
    )
    return SubmissionEnvelope(
        product_document=encode_document(document),
        product_group=product_group,
        signature=signature,
    )


def decode_envelope_document(envelope: SubmissionEnvelope) -> dict[str, Any]:
    """Decode ``product_document`` back into the document JSON object.

    Used for diagnostics; the client never needs to read its own payload.
    """
    return json.loads(base64.b64decode(envelope.product_document).decode("utf-8"))
