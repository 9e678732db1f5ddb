"""Package-wide logging: entry points call ``configure_logging`` once, modules use ``get_logger``."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT = "cashflow_engine"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_configured = False


def _level_from_text(text: str) -> int | None:
    text = text.strip().upper()
    if text.isdigit():
        return int(text)
    numeric = getattr(logging, text, None)
    return numeric if isinstance(numeric, int) else None


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    candidates = [level] if isinstance(level, str) else []
    candidates.append(os.getenv("CASHFLOW_LOG_LEVEL") or "")
    for text in candidates:
        parsed = _level_from_text(text) if text else None
        if parsed is not None:
            return parsed
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach a stream handler to the package logger. Later calls are no-ops."""
    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT)
    for existing in [h for h in root.handlers if isinstance(h, logging.NullHandler)]:
        root.removeHandler(existing)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    root.setLevel(resolved)
    root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(_ROOT)
    # silent until an entry point configures output
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
