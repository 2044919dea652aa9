"""Logging for the JOBSTATUS command line.

Two handlers hang off the root logger:

| Handler          | Level                     | Output                                   |
|------------------|---------------------------|------------------------------------------|
| console (Rich)   | ``-v``/``-q`` adjusted    | stderr; library records tagged ``[lib]`` |
| flight recorder  | everything, buffered      | a file, written only once a WARNING hits |

Library code never logs the errors it raises. Whoever catches one hands it to
`log_error`, which writes a single structured record.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import re
import sys
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, is_dataclass
from logging.handlers import MemoryHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any

import sqlalchemy
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from jobstatus.errors import CommonError

PROJECT_PREFIX = "jobstatus"

RECORDER_FORMAT = (
    "[%(asctime)s] [%(process)d:%(threadName)s] "
    "%(levelname)s %(name)s:%(lineno)d: %(message)s"
)

_BRACKETS_ONLY = re.compile(r"^[\[\],{}]+$")


class ThirdPartyPrefixFilter(logging.Filter):  # pylint: disable=too-few-public-methods
    """Set ``record.prefix`` to ``[package]`` for records from other libraries.

    Project records get an empty prefix. Nothing is dropped.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        own = record.name.startswith(PROJECT_PREFIX)
        record.prefix = "" if own else f"[{record.name.partition('.')[0]}]"
        return True


@dataclass(frozen=True)
class LogSettings:
    """Everything the root logger is built from.

    ``recorder_path=None`` turns the flight recorder off.
    """

    console_level: int = logging.WARNING
    debug: bool = False
    color: bool = True
    recorder_path: Path | None = None
    recorder_capacity: int = 2000
    logger_levels: Mapping[str, int] = field(default_factory=dict)


def console_handler(
    level: int = logging.INFO, *, debug: bool = False, color: bool = True
) -> RichHandler:
    """Rich handler on stderr.

    In debug mode the level drops to DEBUG and records carry a timestamp, the
    logger name and a link to the emitting source line.
    """
    handler = RichHandler(
        level=logging.DEBUG if debug else level,
        console=Console(stderr=True, color_system="auto" if color else None),
        rich_tracebacks=True,
        show_time=False,
        show_path=debug,
        enable_link_path=debug,
    )
    if debug:
        handler.setFormatter(logging.Formatter("%(asctime)s %(name)s: %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(prefix)s %(message)s"))
        handler.addFilter(ThirdPartyPrefixFilter())
    return handler


def flight_recorder(
    path: Path, capacity: int = 2000, flush_level: int = logging.WARNING
) -> MemoryHandler:
    """Buffer up to ``capacity`` records; dump them to ``path`` at ``flush_level``.

    The file is opened lazily and truncated on first write, so a run without
    warnings leaves no log behind.
    """
    target = logging.FileHandler(path, mode="w", encoding="utf-8", delay=True)
    target.setFormatter(logging.Formatter(RECORDER_FORMAT))
    return MemoryHandler(
        capacity, flushLevel=flush_level, target=target, flushOnClose=False
    )


def configure_logging(settings: LogSettings) -> list[logging.Handler]:
    """Replace the root logger's handlers according to ``settings``.

    The root logger accepts DEBUG; each handler applies its own threshold.
    Returns the installed handlers.
    """
    handlers: list[logging.Handler] = [
        console_handler(
            settings.console_level, debug=settings.debug, color=settings.color
        )
    ]
    if settings.recorder_path is not None:
        handlers.append(
            flight_recorder(settings.recorder_path, settings.recorder_capacity)
        )

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)
    for name, level in settings.logger_levels.items():
        logging.getLogger(name).setLevel(level)
    return handlers


def log_startup(
    logger: logging.Logger,
    settings: LogSettings,
    handlers: list[logging.Handler],
    app_version: str,
) -> None:
    """One INFO banner, then environment details at DEBUG."""
    recording = settings.recorder_path is not None
    logger.info(
        "JOBSTATUS %s (console=%s, flight-recorder=%s)",
        app_version,
        logging.getLevelName(settings.console_level),
        "ON" if recording else "OFF",
    )

    details: dict[str, Any] = {
        "python": sys.version.split()[0],
        "platform": f"{platform.system()} {platform.release()}",
        "pid": os.getpid(),
        "cwd": Path.cwd(),
        "sqlalchemy": sqlalchemy.__version__,
        "handlers": [type(h).__name__ for h in handlers],
        "logger levels": {
            name: logging.getLevelName(level)
            for name, level in settings.logger_levels.items()
        },
    }
    if recording:
        details["flight recorder"] = (
            f"{settings.recorder_path} (capacity {settings.recorder_capacity})"
        )
    for key, value in details.items():
        logger.debug("%s: %s", key, value)


def format_error_data(data: Any) -> str:
    """Render an error payload as one line.

    Dataclasses become dicts, then sorted JSON (``str`` for anything JSON
    cannot hold). Empty containers render as their ``repr`` minus brackets.
    """
    if is_dataclass(data) and not isinstance(data, type):
        data = asdict(data)
    try:
        rendered = json.dumps(data, default=str, sort_keys=True)
    except (TypeError, ValueError):
        rendered = ""
    if rendered and not _BRACKETS_ONLY.match(rendered):
        return rendered
    fallback = repr(data)
    if fallback[:1] in "[(" and len(fallback) >= 2:
        fallback = fallback[1:-1]
    return fallback


def log_error(
    logger: logging.Logger, msg: str, error: CommonError, call_stack: str = ""
) -> None:
    """Write ``error`` as a single ERROR record.

    Structured fields ride in ``extra``: ``errorCode``, ``provenance``
    (outermost hop first), ``origin``, ``callStack`` and ``errorData``.
    """
    logger.error(
        "%s: %s",
        msg,
        error,
        extra={
            "errorCode": error.code,
            "provenance": [str(hop) for hop in reversed(error.provenance)],
            "origin": str(error.origin) if error.origin else "",
            "callStack": call_stack,
            "errorData": format_error_data(error.data),
        },
    )
