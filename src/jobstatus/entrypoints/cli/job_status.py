"""Record and query commands.

Outcomes by error kind:

| Error kind                         | CLI outcome                 |
|------------------------------------|-----------------------------|
| `InvalidQueryError`, `PropsError`  | usage error (exit code 2)   |
| `DuplicateRowError`                | conflict message (exit 1)   |
| anything else                      | failure message (exit 1)    |

Every classified error is also logged through `jobstatus.logging.log_error`.
Read commands print one JSON object per record on stdout.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, NoReturn

import click

from jobstatus import bootstrap, config
from jobstatus.domain import JobStatus, JobStatusCode, JobStatusDto
from jobstatus.errors import (
    CommonError,
    DuplicateRowError,
    InvalidQueryError,
    PropsError,
)
from jobstatus.logging import log_error

from .db import MISSING_DB_URL_MSG
from .helpers import success

if TYPE_CHECKING:
    from datetime import datetime

    from jobstatus.interfaces import JobStatusRepo

logger = logging.getLogger(__name__)

DATE_FORMATS = ["%Y-%m-%d"]


def _fail(command: str, error: CommonError) -> NoReturn:
    log_error(logger, f"{command} failed", error, call_stack=command)
    match error:
        case InvalidQueryError() | PropsError():
            raise click.UsageError(str(error.error))
        case DuplicateRowError():
            raise click.ClickException(
                f"Conflict: this job status is already recorded ({error.code})"
            )
        case _:
            raise click.ClickException(f"{command} failed: {error.code}")


def _open_repo(ctx: click.Context, command: str) -> JobStatusRepo:
    """Open the repository for the duration of the command."""
    try:
        repo = bootstrap.build_repo()
    except config.DatabaseUrlNotSetError as e:
        raise click.ClickException(MISSING_DB_URL_MSG) from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    except CommonError as e:
        _fail(command, e)
    ctx.call_on_close(repo.close)
    return repo


def _echo_records(records: list[JobStatus]) -> None:
    for record in records:
        click.echo(json.dumps(record.to_dto().to_dict()))
    logger.info("%d job status record(s) found", len(records))


def parse_filters(
    ctx: click.Context,  # pylint: disable=unused-argument
    param: click.Parameter | None,  # pylint: disable=unused-argument
    value: tuple[str, ...],
) -> dict[str, str]:
    """Click callback turning ``field=value`` items into a filter set."""
    filters: dict[str, str] = {}
    for item in value:
        name, sep, field_value = item.partition("=")
        if not sep or not name.strip():
            raise click.BadParameter(f"Expected FIELD=VALUE, got {item!r}")
        filters[name.strip()] = field_value.strip()
    return filters


@click.command()
@click.option("--application-id", required=True, help="Application identifier.")
@click.option("--job-id", required=True, help="Job identifier.")
@click.option(
    "--status",
    "status_code",
    required=True,
    type=click.Choice([c.value for c in JobStatusCode], case_sensitive=False),
    help="Status the job reached.",
)
@click.option(
    "--timestamp",
    required=True,
    help="When the status was reached (ISO-8601 with offset, e.g. 2023-07-01T10:00:00Z).",
)
@click.option("--business-date", required=True, help="Business date (YYYY-MM-DD).")
@click.option("--run-id", default=None, help="Optional run identifier.")
@click.option("--host-id", default=None, help="Optional host identifier.")
@click.pass_context
def add(  # pylint: disable=too-many-arguments, too-many-positional-arguments
    ctx: click.Context,
    application_id: str,
    job_id: str,
    status_code: str,
    timestamp: str,
    business_date: str,
    run_id: str | None,
    host_id: str | None,
) -> None:
    """Record a job status."""
    dto = JobStatusDto(
        application_id=application_id,
        job_id=job_id,
        job_status_code=status_code.upper(),
        job_status_timestamp=timestamp,
        business_date=business_date,
        run_id=run_id,
        host_id=host_id,
    )
    try:
        record = JobStatus.from_dto(dto)
    except CommonError as e:
        _fail("add", e)

    repo = _open_repo(ctx, "add")
    try:
        repo.add(record)
    except CommonError as e:
        _fail("add", e)
    success(
        f"Recorded {record.job_status_code.value} for job {record.job_id} "
        f"({record.business_date.isoformat()})"
    )


@click.command()
@click.argument("job_id")
@click.option(
    "--business-date",
    type=click.DateTime(formats=DATE_FORMATS),
    default=None,
    help="Only statuses for this business date (YYYY-MM-DD).",
)
@click.pass_context
def get(ctx: click.Context, job_id: str, business_date: datetime | None) -> None:
    """Print every status recorded for JOB_ID."""
    repo = _open_repo(ctx, "get")
    try:
        if business_date is None:
            records = repo.get_by_job_id(job_id)
        else:
            records = repo.get_by_job_id_business_date(job_id, business_date.date())
    except CommonError as e:
        _fail("get", e)
    _echo_records(records)


@click.command()
@click.option(
    "-f",
    "--filter",
    "filters",
    multiple=True,
    required=True,
    callback=parse_filters,
    help=(
        "FIELD=VALUE equality filter; repeatable. Fields: applicationId, jobId, "
        "jobStatusCode, jobStatusTimestamp, businessDate, runId, hostId."
    ),
)
@click.pass_context
def query(ctx: click.Context, filters: dict[str, str]) -> None:
    """Print every status matching all filters."""
    repo = _open_repo(ctx, "query")
    try:
        records = repo.get_by_query(filters)
    except CommonError as e:
        _fail("query", e)
    _echo_records(records)
