"""
Logging Configuration Module
============================

Configures application-wide logging with Rich console output and an
optional plain-text log file.

The resource handlers log every per-resource decision (skip, delete,
failure) at DEBUG, so ``--log-level debug --log-file run.log`` leaves a
full audit trail of what a run touched.

Example
-------
>>> from cloudsweep.core.logging import setup_logging
>>>
>>> setup_logging(level="DEBUG", log_file="cloudsweep.log")

See Also
--------
rich.logging : Rich library's logging handler.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from rich.console import Console
from rich.logging import RichHandler

CONSOLE_FORMAT = "%(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

# Third-party loggers that are noisy at DEBUG
QUIET_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, level.upper(), logging.INFO)


def _console_handler(console: Optional[Console]) -> logging.Handler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(log_file: str) -> logging.Handler:
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    return handler


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Configure the root logger.

    Replaces any existing root handlers, so calling it again (e.g. once per
    CLI invocation in tests) does not duplicate output.

    Parameters
    ----------
    level : str or int, default="INFO"
        Logging level name or number.
    log_file : str, optional
        Path of a file that also receives every record. Records include
        the name of the worker thread.
    console : Console, optional
        Rich Console to log to. Defaults to stderr.
    """
    level = _resolve_level(level)

    handlers: List[logging.Handler] = [_console_handler(console)]
    if log_file:
        handlers.append(_file_handler(log_file))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug(
        f"Logging at {logging.getLevelName(level)}"
        + (f", also writing to {log_file}" if log_file else "")
    )
