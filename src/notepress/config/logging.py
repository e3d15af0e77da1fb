"""structlog configuration for notepress.

Two output modes:
- Human (default): colored console output to stderr
- JSON (--log-json): Structured JSON lines to stderr

Every record passes through :func:`redact_credentials`, so a git command
line logged at debug level never shows the publish token.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

REDACTED = "***"
_SECRET_KEYS = frozenset({"token", "password", "authorization"})
_AUTH_HEADER_RE = re.compile(r"(Authorization:\s*(?:Basic|Bearer)\s+)\S+", re.IGNORECASE)
_URL_CREDENTIALS_RE = re.compile(r"(https?://)[^/@\s]+@")


def _scrub(text: str) -> str:
    text = _AUTH_HEADER_RE.sub(rf"\g<1>{REDACTED}", text)
    return _URL_CREDENTIALS_RE.sub(rf"\g<1>{REDACTED}@", text)


def redact_credentials(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask auth headers, credentials in URLs and secret-named fields."""
    for key, value in event_dict.items():
        if key.lower() in _SECRET_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = _scrub(value)
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_json: bool = False,
) -> None:
    """Configure structlog processors and output routing.

    Args:
        verbose: Enable DEBUG-level output. When False, only WARNING+.
        quiet: Only ERROR+ from notepress. Ignored when *verbose* is set.
        log_json: Use JSON renderer instead of console renderer.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("notepress").setLevel(level)
    logging.getLogger("markdown_it").setLevel(logging.WARNING)
