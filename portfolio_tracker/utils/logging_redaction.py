"""
Logging redaction helpers.
Redacts bearer tokens and API keys from log messages.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable


_PATTERNS: Iterable[tuple[re.Pattern, str]] = (
    # Authorization: Bearer <jwt>
    (re.compile(r"(Bearer\s+)([A-Za-z0-9\-\._~+/]+=*)"), r"\1[REDACTED]"),
    # Finnhub key in query string: ?symbol=SPY&token=<key>
    (re.compile(r"([?&]token=)([^&\s'\"]+)"), r"\1[REDACTED]"),
    # Generic access token key/value
    (re.compile(r"(?i)\b(access_token|token)\s*[:=]\s*([A-Za-z0-9\-\._]+)"), r"\1=[REDACTED]"),
    # API keys in config output
    (re.compile(r"(?i)(finnhub_api_key|api[_-]?key)\s*[:=]\s*['\"]?([A-Za-z0-9\-\._]+)"), r"\1=[REDACTED]"),
)


def redact_message(message: str) -> str:
    redacted = message
    for pattern, replacement in _PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


class RedactingFilter(logging.Filter):
    """Filter that redacts sensitive data from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Malformed format args; leave the record for the handler to report
            return True
        record.msg = redact_message(message)
        record.args = ()
        return True


def install_redaction_filter() -> None:
    """Attach the filter to root handlers so records from every logger pass through it."""
    root = logging.getLogger()
    targets = list(root.handlers) or [root]
    for target in targets:
        if any(isinstance(existing, RedactingFilter) for existing in target.filters):
            continue
        target.addFilter(RedactingFilter())
