"""JOBSTATUS CLI entry point.

Defines the top-level ``jobstatus`` command (via Click-Extra), configures
logging, and registers the subcommands:

- ``jobstatus add`` / ``get`` / ``query``: record and read job statuses.
- ``jobstatus db``: connectivity check and table creation.

Examples
    $ jobstatus --version
    $ jobstatus db init
    $ jobstatus add --application-id App1 --job-id J1 --status START \\
        --timestamp 2023-07-01T10:00:00Z --business-date 2023-07-01
    $ jobstatus query -f jobId=J1 -f businessDate=2023-07-01
"""

import logging
from pathlib import Path

import click
import click_extra as clickx
from platformdirs import user_log_dir

from jobstatus import __version__
from jobstatus.logging import LogSettings, configure_logging, log_startup

from .db import db as db_group
from .helpers import parse_log_level
from .job_status import add, get, query

logger = logging.getLogger(__name__)


HELP = """JOBSTATUS command-line interface.

    Records job-status events (an application's job reaching START, SUCCEED or
    FAIL at a point in time, for a business date) and queries them back.
    """


@clickx.extra_group(
    version=__version__,
    help=HELP,
    params=[
        clickx.ColorOption(show_envvar=True),
        clickx.TimerOption(show_envvar=True),
        clickx.ExtraVersionOption(),
    ],
)
@click.option(
    "--verbose",
    "-v",
    "verbose_count",
    count=True,
    help="Increase the default WARNING verbosity by one level per repetition.",
    default=0,
)
@click.option(
    "--quiet",
    "-q",
    "quiet_count",
    count=True,
    help="Decrease the default WARNING verbosity by one level per repetition.",
    default=0,
)
@click.option(
    "--debug/--no-debug",
    is_flag=True,
    help="Enable debug mode (logger names, timestamps and source paths).",
    default=False,
)
@click.option(
    "--log-path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the flight recorder log file.",
    default=None,
    envvar="JOBSTATUS_LOG_PATH",
    show_envvar=True,
)
@click.option(
    "--flight-recorder/--no-flight-recorder",
    "flight_recorder",
    is_flag=True,
    help=(
        "Keep the last N log records at DEBUG granularity and write them to "
        "--log-path when a WARNING/ERROR occurs. Console verbosity is unchanged."
    ),
    default=True,
    show_envvar=True,
)
@click.option(
    "--flight-recorder-capacity",
    type=int,
    default=2000,
    hidden=True,
    envvar="JOBSTATUS_FLIGHT_RECORDER_CAPACITY",
    show_envvar=True,
    help="Capacity of the flight recorder (in number of log records).",
)
@click.option(
    "-L",
    "--logger-level",
    "logger_levels",
    multiple=True,
    callback=parse_log_level,
    help=(
        "Set MINIMUM LEVEL for specific LOGGERS (NAME=LEVEL). Repeatable "
        "(e.g. -L sqlalchemy=INFO) or via JOBSTATUS_LOGGER_LEVELS."
    ),
    default=("sqlalchemy=WARNING",),
    show_default=True,
    show_envvar=True,
)
@clickx.pass_context
def jobstatus(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    verbose_count: int,
    quiet_count: int,
    debug: bool,
    log_path: Path | None,
    flight_recorder: bool,
    flight_recorder_capacity: int,
    logger_levels: dict[str, int],
) -> None:
    """JOBSTATUS command-line interface."""

    level = logging.WARNING - 10 * (verbose_count - quiet_count)
    if flight_recorder and log_path is None:
        log_path = Path(user_log_dir("jobstatus", appauthor=False, ensure_exists=True))
        log_path /= "latest.log"

    settings = LogSettings(
        console_level=max(logging.DEBUG, min(logging.CRITICAL, level)),
        debug=debug,
        color=ctx.color is not False,
        recorder_path=log_path if flight_recorder else None,
        recorder_capacity=flight_recorder_capacity,
        logger_levels=logger_levels,
    )
    handlers = configure_logging(settings)
    log_startup(logger, settings, handlers, __version__)
    ctx.call_on_close(logging.shutdown)


jobstatus.add_command(db_group)
jobstatus.add_command(add)
jobstatus.add_command(get)
jobstatus.add_command(query)
