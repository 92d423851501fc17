"""Logger hierarchy shared by the pipeline, the CLI and the service."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "unmask"
CONSOLE_FORMAT = "[unmask] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """``get_logger("orchestrator")`` -> the ``unmask.orchestrator`` logger."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install console (and optionally file) handlers on the ``unmask`` logger.

    Existing handlers are dropped first, so calling this again from the same
    process replaces the output instead of doubling it.
    """
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger(_ROOT)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(level)
    root.propagate = False

    root.addHandler(_with_format(logging.StreamHandler(), level, CONSOLE_FORMAT))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        root.addHandler(
            _with_format(logging.FileHandler(log_file, encoding="utf-8"), level, FILE_FORMAT)
        )
    return root


def log_exception(logger: logging.Logger, message: str, exc: BaseException) -> None:
    """Log ``exc``; the traceback is only attached in verbose mode."""
    if logger.isEnabledFor(logging.DEBUG):
        logger.exception("%s: %s", message, exc)
    else:
        logger.error("%s: %s", message, exc)


def _with_format(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


__all__ = ["configure_logging", "get_logger", "log_exception"]
