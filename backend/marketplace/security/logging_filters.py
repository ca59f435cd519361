"""Logging filters that scrub credentials and guest contact details."""

from __future__ import annotations

import logging
import re

_REDACTED = "**REDACTED**"

_PATTERNS = (
    re.compile(r"(Authorization: Bearer\s+)[\w\.-]+", re.IGNORECASE),
    re.compile(r"(\"access_token\"\s*:\s*\")[^\"]+", re.IGNORECASE),
    re.compile(r"(\"(?:contact_phone|guest_email)\"\s*:\s*\")[^\"]+", re.IGNORECASE),
)


def scrub(text: str) -> str:
    """Replace sensitive values in ``text`` with a redaction marker."""
    for pattern in _PATTERNS:
        text = pattern.sub(lambda match: match.group(1) + _REDACTED, text)
    return text


class SensitiveFilter(logging.Filter):
    """Redact bearer tokens and guest contact details from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = scrub(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                scrub(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        return True


def install(logger_names: tuple[str, ...] = ("uvicorn", "uvicorn.access", "uvicorn.error", "")) -> None:
    """Attach a single :class:`SensitiveFilter` to each named logger."""
    for name in logger_names:
        target = logging.getLogger(name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


__all__ = ["SensitiveFilter", "install", "scrub"]
