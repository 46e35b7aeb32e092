"""Pydantic models for the goods-introduction document and its envelope.

Field names match the registry's JSON keys.  Where the registry uses
camelCase (``importRequest``, ``participantInn``) the Python attribute is
snake_case and the wire name is an alias; both spellings are accepted on
input.

Serialization rule for documents: a field that is ``None`` is left out of
the JSON entirely, at every nesting level.  See
:func:`crpt_api.core.envelope.serialize_document`.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from crpt_api.config.defaults import DOCUMENT_FORMAT, DOCUMENT_TYPE


class DocumentMeta(BaseModel):
    """Optional ``description`` block of a document."""

    model_config = ConfigDict(populate_by_name=True)

    participant_inn: Optional[str] = Field(default=None, alias="participantInn")


class ProductItem(BaseModel):
    """One unit introduced into circulation.

    Attributes:
        certificate_document: Kind of conformity document.
        certificate_document_date: Issue date of the conformity document.
        certificate_document_number: Number of the conformity document.
        owner_inn: Tax id of the owner.
        producer_inn: Tax id of the producer.
        production_date: Production date of the unit.
        tnved_code: Commodity classification code.
        uit_code: Unit identification code.
        uitu_code: Transport-package identification code.
    """

    certificate_document: Optional[str] = None
    certificate_document_date: Optional[str] = None
    certificate_document_number: Optional[str] = None
    owner_inn: Optional[str] = None
    producer_inn: Optional[str] = None
    production_date: Optional[str] = None
    tnved_code: Optional[str] = None
    uit_code: Optional[str] = None
    uitu_code: Optional[str] = None


class Document(BaseModel):
    """Goods-introduction document, serialized into ``product_document``.

    Field declaration order is the JSON key order.
    """

    model_config = ConfigDict(populate_by_name=True)

    description: Optional[DocumentMeta] = None
    doc_id: Optional[str] = None
    doc_status: Optional[str] = None
    doc_type: Optional[str] = None
    import_request: Optional[bool] = Field(default=None, alias="importRequest")
    owner_inn: Optional[str] = None
    participant_inn: Optional[str] = None
    producer_inn: Optional[str] = None
    production_date: Optional[str] = None
    production_type: Optional[str] = None
    products: Optional[List[ProductItem]] = None
    reg_date: Optional[str] = None
    reg_number: Optional[str] = None


class SubmissionEnvelope(BaseModel):
    """Request body of the document-creation endpoint."""

    model_config = ConfigDict(frozen=True)

    document_format: Literal["MANUAL"] = DOCUMENT_FORMAT
    product_document: str
    product_group: str
    signature: str
    type: Literal["LP_INTRODUCE_GOODS"] = DOCUMENT_TYPE


class ApiReply(BaseModel):
    """Outcome of one submission.

    On a 2xx answer the fields are read from the response body (any subset
    may be present).  On any other status the client fills ``code`` with the
    status as text and ``error_message`` with the raw body.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    value: Optional[str] = None
    code: Optional[str] = None
    error_message: Optional[str] = None
    description: Optional[str] = None

    @property
    def rejected(self) -> bool:
        """Whether ``code`` carries a non-2xx HTTP status.

        A 2xx body may itself contain ``error_message`` (and an application
        ``code`` such as ``"0"``), so rejection is decided from ``code``.
        """
        code = self.code
        if code is None or len(code) != 3 or not code.isdigit():
            return False
        return not code.startswith("2")
