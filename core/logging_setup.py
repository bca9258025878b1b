"""Logging for the OurGlass engine.

Engine modules log through ``get_logger("ourglass.<module>")`` and stay
silent until the entrypoint calls ``configure_logging`` once.
"""

from __future__ import annotations

import logging

__all__ = ["configure_logging", "get_logger"]

_ROOT_NAME = "ourglass"
_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_configured = False


def _level(value: int | str) -> int:
    if isinstance(value, int):
        return value
    numeric = getattr(logging, str(value).strip().upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level: int | str = logging.INFO) -> None:
    """Send ``ourglass`` records to stderr at ``level``; later calls are no-ops."""

    global _configured
    if _configured:
        return

    root = logging.getLogger(_ROOT_NAME)
    for handler in [h for h in root.handlers if isinstance(h, logging.NullHandler)]:
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(_level(level))
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(_ROOT_NAME)
    if not _configured and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
