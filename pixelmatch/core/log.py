# pixelmatch/core/log.py
"""
Logging helpers.

All loggers live under the "pixelmatch" namespace. `configure_logging` is
called once by entry points (CLI, app factory); library code only calls
`get_logger(__name__)`.

Secrets named in _SECRET_ENV_VARS are redacted from every record that passes
through handlers installed here.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

_ROOT = "pixelmatch"
_SECRET_ENV_VARS = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY")
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATEFMT = "(%Y-%m-%d %H:%M:%S)"


class RedactSecretsFilter(logging.Filter):
    """Replace configured API keys with [REDACTED] in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        secrets = [v for v in (os.getenv(k) for k in _SECRET_ENV_VARS) if v]
        if not secrets:
            return True
        msg = record.getMessage()
        redacted = msg
        for val in secrets:
            redacted = redacted.replace(val, "[REDACTED]")
        if redacted != msg:
            record.msg = redacted
            record.args = None
        return True


def get_logger(name: str) -> logging.Logger:
    if name == _ROOT or name.startswith(_ROOT + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(level: str | int = "INFO", log_file: str | None = None) -> logging.Logger:
    """Install a stderr handler and, when `log_file` is set, a rotating file handler."""
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level if isinstance(level, int) else level.upper())

    # Avoid duplicate handlers if reconfigured in REPL/tests
    for h in list(logger.handlers):
        if getattr(h, "_pixelmatch", False):
            logger.removeHandler(h)
            h.close()

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    redact = RedactSecretsFilter()

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    stream.addFilter(redact)
    stream._pixelmatch = True  # type: ignore[attr-defined]
    logger.addHandler(stream)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        handler.setFormatter(formatter)
        handler.addFilter(redact)
        handler._pixelmatch = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger


def preview(text: str, limit: int = 500) -> str:
    """Truncate provider output for debug logs."""
    return text if len(text) <= limit else text[:limit] + "…"
