"""Core building blocks of the registry client.

Sub-modules:
- ``exceptions``     - client exception hierarchy
- ``schemas``        - pydantic models for documents, envelope and reply
- ``envelope``       - pure document → envelope transformation
- ``rate_limiter``   - in-process fixed-window permit pool
- ``logging_config`` - structlog configuration and per-submission context
"""

from __future__ import annotations
