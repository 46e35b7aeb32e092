"""Structured logging for the ``crpt_api`` package, built on structlog.

The package never configures logging on import; it only emits records
under the ``crpt_api`` logger namespace.  ``configure_logging()`` is an
opt-in setup used by ``scripts/submit_document.py`` and by applications
that want this package's JSON output.  Modules emit records either through
the stdlib API or through structlog:

Stdlib usage::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("message", extra={"key": "value"})

Structlog usage::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("message", status_code=201)

A ``submission_id`` context variable is set by
:meth:`crpt_api.client.CrptApiClient.submit` and merged into every log record
emitted while that submission is in flight.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog
from structlog.types import EventDict, WrappedLogger

# ---------------------------------------------------------------------------
# Context variable - set per submission, read by the log processor
# ---------------------------------------------------------------------------

submission_id_var: ContextVar[str | None] = ContextVar("submission_id", default=None)
"""Per-submission ID propagated from the client to log processors."""


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "token",
    "bearer",
    "authorization",
    "signature",
    "api_key",
    "password",
    "secret",
})
"""Lower-cased substrings that identify log event-dict keys whose values
must be redacted before the record reaches any renderer."""


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace values of secret-bearing keys with a redaction marker.

    Scans both top-level keys and any nested ``dict`` values one level deep
    (e.g. ``headers={...}``).  Keys are matched case-insensitively against
    :data:`_SECRET_SUBSTRINGS`.

    Returns:
        The event dict with sensitive values replaced by ``"[REDACTED]"``.
    """
    redacted = "[REDACTED]"
    for key in list(event_dict.keys()):
        key_lower = key.lower()
        if any(secret in key_lower for secret in _SECRET_SUBSTRINGS):
            event_dict[key] = redacted
            continue
        val = event_dict[key]
        if isinstance(val, dict):
            for nested_key in list(val.keys()):
                if any(secret in str(nested_key).lower() for secret in _SECRET_SUBSTRINGS):
                    val[nested_key] = redacted
    return event_dict


def _inject_submission_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Inject the current submission ID into the log event dict if set."""
    sid = submission_id_var.get()
    if sid is not None and "submission_id" not in event_dict:
        event_dict["submission_id"] = sid
    return event_dict


# ---------------------------------------------------------------------------
# Handler attached to the package logger
# ---------------------------------------------------------------------------

PACKAGE_LOGGER_NAME = "crpt_api"
"""Logger namespace that :func:`configure_logging` attaches its handler to."""


class _SubmissionLogHandler(logging.StreamHandler):
    """Stream handler installed by :func:`configure_logging`.

    A distinct type so that reconfiguration replaces only this handler and
    leaves any handler a host application put on the same logger.
    """


def _renderer_for(level_name: str) -> structlog.types.Processor:
    if level_name == "DEBUG":
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def configure_logging(log_level: str = "INFO") -> None:
    """Render ``crpt_api`` log records through structlog.

    One handler writing to stdout is attached to the ``crpt_api`` logger,
    and that logger stops propagating, so the root logger's handlers and
    level belong to the host application and are never touched.  Records
    are one JSON object per line, or coloured console lines at ``DEBUG``,
    and carry ``timestamp``, ``level``, ``logger``, ``event`` and, inside a
    submission, ``submission_id``.

    ``structlog.configure`` is process-wide: an application that already
    configures structlog itself should skip this function and add
    :func:`_inject_submission_id` and :func:`_redact_secrets` to its own
    processor chain.

    Calling this again replaces the handler it installed earlier.

    Args:
        log_level: One of ``"DEBUG"``, ``"INFO"``, ``"WARNING"``,
            ``"ERROR"``, ``"CRITICAL"``.  Case-insensitive.
    """
    level_name = log_level.upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_submission_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    handler = _SubmissionLogHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer_for(level_name),
            ],
        )
    )

    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for existing in list(package_logger.handlers):
        if isinstance(existing, _SubmissionLogHandler):
            package_logger.removeHandler(existing)
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level_name, logging.INFO))
    package_logger.propagate = False

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
