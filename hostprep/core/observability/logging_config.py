"""
Logging configuration — set up once by the CLI entry point.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
this config. User-facing progress lines are printed by the CLI with
click; logging carries diagnostics (commands run, exit codes, why a
step degraded).

Levels are resolved in precedence order:
    --debug / --verbose / --quiet  >  HOSTPREP_LOG_LEVEL  >  WARNING

A provisioning run is worth keeping a record of, so HOSTPREP_LOG_FILE
adds a file handler; HOSTPREP_LOG_FILE_LEVEL sets its level separately
(DEBUG there captures every command without flooding the terminal).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

LOG_LEVEL_ENV = "HOSTPREP_LOG_LEVEL"
LOG_FILE_ENV = "HOSTPREP_LOG_FILE"
LOG_FILE_LEVEL_ENV = "HOSTPREP_LOG_FILE_LEVEL"

# Console, quiet: the CLI already prints status lines, so just tag the level
_FMT_QUIET = "%(levelname)s: %(message)s"
# Console at INFO: which module is doing what, and when
_FMT_PROGRESS = "%(asctime)s [%(name)s] %(message)s"
# Console at DEBUG and every log file
_FMT_DETAIL = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d %(message)s"

_CLOCK = "%H:%M:%S"


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    env: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if env is None else env
    return env.get(LOG_LEVEL_ENV, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console handler, plus a file handler if asked for.

    Replaces any handlers already on the root logger, so calling it
    again (e.g. once per CLI invocation in tests) does not stack output.
    The file keeps full timestamps and defaults to the console level.
    """
    console_level = _level_number(level)
    handlers: list[logging.Handler] = [_console_handler(console_level)]

    if log_file:
        file_level = _level_number(log_file_level) if log_file_level else console_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_DETAIL))
        handlers.append(fh)

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(min(h.level for h in handlers))

    # A CLI run must never die on a broken log stream
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    if level <= logging.DEBUG:
        formatter = logging.Formatter(_FMT_DETAIL, datefmt=_CLOCK)
    elif level <= logging.INFO:
        formatter = logging.Formatter(_FMT_PROGRESS, datefmt=_CLOCK)
    else:
        formatter = logging.Formatter(_FMT_QUIET)
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _level_number(name: str | None) -> int:
    """Level name to number; unknown or empty names mean WARNING."""
    if not name:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)
