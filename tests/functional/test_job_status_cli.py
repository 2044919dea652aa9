"""Functional tests for recording and querying job statuses from the CLI.

These tests drive ``jobstatus add``/``get``/``query`` through
``click.testing.CliRunner`` against a temp SQLite file, asserting output and
exit codes the way a user (or a shell script) would see them:

* success lines go to stderr, JSON records to stdout (one per line);
* invalid input and too-broad queries are usage errors (exit ``2``);
* duplicates are conflicts (exit ``1``).
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner, Result
from sqlalchemy.engine import URL

from jobstatus.entrypoints.cli.db import MISSING_DB_URL_MSG
from jobstatus.entrypoints.cli.main import jobstatus as jobstatus_cli

# pylint: disable=redefined-outer-name
# pylint: disable=magic-value-comparison

BASE_ARGS = ["--no-flight-recorder"]

ADD_J1 = [
    "add",
    "--application-id",
    "App1",
    "--job-id",
    "J1",
    "--status",
    "START",
    "--timestamp",
    "2023-07-01T10:00:00Z",
    "--business-date",
    "2023-07-01",
]

EXPECTED_J1 = {
    "applicationId": "App1",
    "jobId": "J1",
    "jobStatusCode": "START",
    "jobStatusTimestamp": "2023-07-01T10:00:00Z",
    "businessDate": "2023-07-01",
    "runId": None,
    "hostId": None,
}


def _json_lines(result: Result) -> list[dict]:
    """Decode the JSON records printed by a read command."""
    return [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]


@pytest.fixture
def runner(tmp_path: Path) -> CliRunner:
    """A runner whose JOBSTATUS_DB_URL points at an initialized SQLite file."""
    url = str(URL.create("sqlite+pysqlite", database=str(tmp_path / "jobs.db")))
    cli_runner = CliRunner(env={"JOBSTATUS_DB_URL": url})
    result = cli_runner.invoke(jobstatus_cli, [*BASE_ARGS, "db", "init"])
    assert result.exit_code == 0, result.output
    return cli_runner


def test_record_and_query_session(runner: CliRunner):
    """Record a job start, then find it back the ways an operator would."""

    # The operator records that job J1 started.
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, *ADD_J1])
    assert result.exit_code == 0, result.output
    assert "Recorded START for job J1 (2023-07-01)" in result.output

    # A retrying scheduler sends the same event again: it is a conflict.
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, *ADD_J1])
    assert result.exit_code == 1
    assert "Conflict" in result.output

    # Looking the job up by id prints the one record as JSON.
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, "get", "J1"])
    assert result.exit_code == 0, result.output
    assert _json_lines(result) == [EXPECTED_J1]

    # A query on the job id alone is too broad.
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, "query", "-f", "jobId=J1"])
    assert result.exit_code == 2
    assert "too broad" in result.output

    # Adding the business date makes it usable.
    result = runner.invoke(
        jobstatus_cli,
        [*BASE_ARGS, "query", "-f", "jobId=J1", "-f", "businessDate=2023-07-01"],
    )
    assert result.exit_code == 0, result.output
    assert _json_lines(result) == [EXPECTED_J1]


def test_get_by_business_date(runner: CliRunner):
    """--business-date narrows the lookup to one date."""
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, *ADD_J1, "--run-id", "R1"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(
        jobstatus_cli, [*BASE_ARGS, "get", "J1", "--business-date", "2023-07-01"]
    )
    assert [r["runId"] for r in _json_lines(result)] == ["R1"]

    result = runner.invoke(
        jobstatus_cli, [*BASE_ARGS, "get", "J1", "--business-date", "2023-06-30"]
    )
    assert result.exit_code == 0, result.output
    assert not _json_lines(result)


def test_status_is_case_insensitive(runner: CliRunner):
    """Status codes may be typed in lower case."""
    args = [*ADD_J1]
    args[args.index("START")] = "succeed"
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, *args])
    assert result.exit_code == 0, result.output
    assert "Recorded SUCCEED" in result.output


@pytest.mark.parametrize(
    ("flag", "value", "message"),
    [
        ("--timestamp", "2023-07-01T10:00:00", "must be timezone-aware"),
        ("--timestamp", "2999-01-01T00:00:00Z", "in the future"),
        ("--business-date", "2023-07-02", "after the jobStatusTimestamp date"),
    ],
)
def test_add_invalid_values_are_usage_errors(runner: CliRunner, flag, value, message):
    """Domain validation failures exit with code 2 and name the problem."""
    args = [*ADD_J1]
    args[args.index(flag) + 1] = value
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, *args])
    assert result.exit_code == 2
    assert message in result.output


@pytest.mark.parametrize(
    "filters",
    [["-f", "jobId"], ["-f", "status=START", "-f", "jobId=J1", "-f", "businessDate=2023-07-01"]],
    ids=["malformed-item", "unknown-field"],
)
def test_query_bad_filters_are_usage_errors(runner: CliRunner, filters):
    """Malformed items and unknown fields exit with code 2."""
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, "query", *filters])
    assert result.exit_code == 2


def test_commands_need_a_database_url():
    """Without JOBSTATUS_DB_URL, reads fail with guidance."""
    runner = CliRunner(env={"JOBSTATUS_DB_URL": ""})
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, "get", "J1"])
    assert result.exit_code == 1
    assert MISSING_DB_URL_MSG in result.output


def test_uninitialized_database_fails_cleanly(tmp_path: Path):
    """A database without the table is an error, not a traceback."""
    url = str(URL.create("sqlite+pysqlite", database=str(tmp_path / "empty.db")))
    runner = CliRunner(env={"JOBSTATUS_DB_URL": url})
    result = runner.invoke(jobstatus_cli, [*BASE_ARGS, "get", "J1"])
    assert result.exit_code == 1
    assert "RepoOtherError" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
