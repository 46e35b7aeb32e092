"""Shared pytest fixtures for the registry client tests.

Fixture summary
---------------
document        - A fully populated goods-introduction Document.
api_client      - CrptApiClient with capacity 5 and an hour-long window, so the
                  refill timer never fires during a test.
create_url      - Full URL of the document-creation endpoint.
(autouse)       - Restores root and ``crpt_api`` logger state after each test.

All HTTP traffic is mocked with respx; no network access is required.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Keep a developer's real CRPT_* environment from leaking into the tests.

for _key in list(os.environ):
    if _key.startswith("CRPT_"):
        del os.environ[_key]

from crpt_api.client import CrptApiClient  # noqa: E402
from crpt_api.config.defaults import BASE_URL, CREATE_DOCUMENT_PATH  # noqa: E402
from crpt_api.config.settings import get_settings  # noqa: E402
from crpt_api.core.logging_config import PACKAGE_LOGGER_NAME  # noqa: E402
from crpt_api.core.schemas import Document, DocumentMeta, ProductItem  # noqa: E402

get_settings.cache_clear()

TEST_TOKEN = "test-bearer-token"


@pytest.fixture(autouse=True)
def _restore_loggers() -> Iterator[None]:
    """Undo handler, level and propagation changes made by configure_logging()."""
    root = logging.getLogger()
    package = logging.getLogger(PACKAGE_LOGGER_NAME)
    root_handlers, root_level = list(root.handlers), root.level
    package_handlers, package_level = list(package.handlers), package.level
    package_propagate = package.propagate
    yield
    root.handlers[:] = root_handlers
    root.setLevel(root_level)
    package.handlers[:] = package_handlers
    package.setLevel(package_level)
    package.propagate = package_propagate


@pytest.fixture
def create_url() -> str:
    return BASE_URL + CREATE_DOCUMENT_PATH


@pytest.fixture
def document() -> Document:
    """A document with metadata and two product items."""
    return Document(
        description=DocumentMeta(participant_inn="7700000000"),
        doc_id="doc-001",
        doc_status="NEW",
        doc_type="LP_INTRODUCE_GOODS",
        import_request=False,
        owner_inn="7700000000",
        participant_inn="7700000000",
        producer_inn="7711111111",
        production_date="2024-03-01",
        production_type="OWN_PRODUCTION",
        products=[
            ProductItem(
                certificate_document="CONFORMITY_CERTIFICATE",
                certificate_document_date="2024-01-15",
                certificate_document_number="RU-001",
                owner_inn="7700000000",
                producer_inn="7711111111",
                production_date="2024-03-01",
                tnved_code="6403990000",
                uit_code="010460012345678921abcdef",
            ),
            ProductItem(tnved_code="6403990000", uitu_code="000460012345678901"),
        ],
        reg_date="2024-03-02",
        reg_number="R-42",
    )


@pytest_asyncio.fixture
async def api_client() -> AsyncGenerator[CrptApiClient, None]:
    """A client whose window is long enough that no refill happens mid-test."""
    client = CrptApiClient(TEST_TOKEN, period=3600, capacity=5)
    yield client
    await client.aclose()
