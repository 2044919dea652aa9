"""Conversions between `JobStatus` records and ``"JobStatus"`` rows.

A row is a plain tuple in `COLUMN_ORDER`. `domain_to_row` produces the insert
parameters; `row_to_domain` reads a scanned row back. The read path rebuilds
the record through `JobStatus.from_dto`, so rows written out-of-band or
corrupted at rest fail validation instead of being trusted.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Any

from jobstatus.domain import JobStatus, JobStatusDto
from jobstatus.errors import CommonError, Provenance, ScanError

from .schema import COLUMN_ORDER, job_status

COMPONENT = "mapper"

#: Python types a scanned value may have, per column.
SCAN_TYPES: dict[str, type] = {
    "ApplicationId": str,
    "JobId": str,
    "JobStatusCode": str,
    "JobStatusTimestamp": datetime,
    "BusinessDate": date,
    "RunId": str,
    "HostId": str,
}


def domain_to_row(record: JobStatus) -> tuple[Any, ...]:
    """Return ``record`` as insert parameters in `COLUMN_ORDER`."""
    return (
        record.application_id,
        record.job_id,
        record.job_status_code.value,
        record.job_status_timestamp,
        record.business_date,
        record.run_id,
        record.host_id,
    )


def row_to_domain(row: Sequence[Any]) -> JobStatus:
    """Rebuild a `JobStatus` from a scanned row.

    Args:
        row: Seven values in `COLUMN_ORDER`.

    Returns:
        JobStatus: The validated record.

    Raises:
        ScanError: If the row has the wrong width, a value of the wrong type,
            or NULL in a non-nullable column.
        PropsError: If the values fail domain validation.
    """
    where = Provenance(COMPONENT, "row_to_domain")
    values = tuple(row)

    if len(values) != len(COLUMN_ORDER):
        raise ScanError(
            f"expected {len(COLUMN_ORDER)} columns, got {len(values)}",
            values,
            provenance=where,
        )

    for column, value in zip(COLUMN_ORDER, values):
        if value is None:
            if not job_status.c[column].nullable:
                raise ScanError(
                    f"NULL in non-nullable column {column}", values, provenance=where
                )
            continue
        expected = SCAN_TYPES[column]
        # datetime subclasses date; a date column must not hold a datetime
        if not isinstance(value, expected) or (
            expected is date and isinstance(value, datetime)
        ):
            raise ScanError(
                f"column {column} holds {type(value).__name__}, "
                f"expected {expected.__name__}",
                values,
                provenance=where,
            )

    application_id, job_id, code, timestamp, business_date, run_id, host_id = values
    dto = JobStatusDto(
        application_id=application_id,
        job_id=job_id,
        job_status_code=code,
        job_status_timestamp=timestamp,
        business_date=business_date,
        run_id=run_id,
        host_id=host_id,
    )
    try:
        return JobStatus.from_dto(dto)
    except CommonError as e:
        raise e.wrap(where)


def rows_to_domain(rows: Iterable[Sequence[Any]]) -> list[JobStatus]:
    """Convert every row, or none.

    Stops at the first row that fails and re-raises its error; callers never
    receive a partial list.
    """
    result: list[JobStatus] = []
    for row in rows:
        try:
            result.append(row_to_domain(row))
        except CommonError as e:
            raise e.wrap(Provenance(COMPONENT, "rows_to_domain"))
    return result
