"""Logging for the ``ledger_analytics`` package.

Library modules only ever call ``get_logger("ledger_analytics.<module>")``.
Output is decided by the host: an application (or the bundled CLI) calls
:func:`configure_logging` once; until then the package logger carries a
``NullHandler`` and stays silent.

Messages use a terse ``area:event key=value`` shape, e.g.
``cache:miss key=quickAnalytics_month_all_3f2a...``.

The level comes from the ``level`` argument, else ``LEDGER_ANALYTICS_LOG_LEVEL``,
else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO

_PKG_LOGGER_NAME = "ledger_analytics"
_LEVEL_ENV_VAR = "LEDGER_ANALYTICS_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None) -> int:
    """Map an ``int``, a level name or a numeric string to a logging level.

    ``None`` consults ``LEDGER_ANALYTICS_LOG_LEVEL``. Unknown names give ``INFO``.
    """

    if level is None:
        level = os.getenv(_LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> logging.Handler:
    """Attach one ``StreamHandler`` to the package logger and return it.

    Repeat calls are no-ops returning the existing handler unless ``force`` is
    set, in which case the previous handler is replaced. ``stream`` defaults to
    the current ``sys.stderr``.
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        if not force:
            return _handler
        logger.removeHandler(_handler)

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = resolve_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))
    logger.setLevel(resolved)
    logger.addHandler(handler)
    # The package handler is the only sink once configured.
    logger.propagate = False
    _handler = handler
    return handler


def reset_logging() -> None:
    """Undo :func:`configure_logging` (used by tests and embedding hosts)."""

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)
        _handler = None
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


@contextmanager
def log_elapsed(logger: logging.Logger, event: str, **fields: object) -> Iterator[None]:
    """Log ``<event> k=v ... elapsed_ms=N`` at debug level when the block exits."""

    t0 = time.perf_counter()
    try:
        yield
    finally:
        if logger.isEnabledFor(logging.DEBUG):
            extras = " ".join(f"{k}={v}" for k, v in fields.items())
            logger.debug(
                "%s %s elapsed_ms=%.1f", event, extras, (time.perf_counter() - t0) * 1000
            )
