"""
Logging setup for the storefront backend.

Every module logs through a child of the ``storefront`` logger. Context passed
via ``extra=`` is rendered as ``key=value`` pairs so operators can grep for
events such as ``event=blob_cleanup_failed``.
"""

from __future__ import annotations

import logging

ROOT_LOGGER = "storefront"

# Attributes every LogRecord carries; anything else came from ``extra=``.
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class KeyValueFormatter(logging.Formatter):
    """Standard formatter that appends ``extra`` fields as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if not fields:
            return base
        pairs = " ".join(f"{key}={value!r}" if isinstance(value, str) and " " in value else f"{key}={value}"
                         for key, value in sorted(fields.items()))
        return f"{base} {pairs}"


def get_logger(name: str) -> logging.Logger:
    """Return ``storefront.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(level: str = "INFO") -> None:
    """Install a single key=value stream handler on the storefront logger."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    if any(isinstance(h.formatter, KeyValueFormatter) for h in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(KeyValueFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
