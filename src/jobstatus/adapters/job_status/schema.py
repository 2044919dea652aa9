"""Job status schema.

Defines the ``"JobStatus"`` table. Column names are mixed-case, so they must
be quoted in hand-written SQL (see ``predicates.quote_identifier``).

The column order below is load-bearing: the insert statement's parameter
order, the select projection and the mapper all follow `COLUMN_ORDER`.

| Constraint                                                      | Purpose              |
|-----------------------------------------------------------------|----------------------|
| UNIQUE(JobId, BusinessDate, JobStatusTimestamp, ApplicationId)  | reject duplicate events |
"""

from __future__ import annotations

from sqlalchemy import Column, Date, MetaData, Table, Text, UniqueConstraint

from jobstatus.adapters.db.sa_types import UTCDateTime

__all__ = ["COLUMN_ORDER", "TABLE_NAME", "UNIQUE_KEY", "job_status", "metadata"]

TABLE_NAME = "JobStatus"

#: Unique constraints are named uq_<table>_<col...>.
metadata = MetaData(naming_convention={"uq": "uq_%(table_name)s_%(column_0_N_name)s"})

#: Insert parameter order == select projection order == mapper tuple order.
COLUMN_ORDER: tuple[str, ...] = (
    "ApplicationId",
    "JobId",
    "JobStatusCode",
    "JobStatusTimestamp",
    "BusinessDate",
    "RunId",
    "HostId",
)

#: Columns of the uniqueness constraint.
UNIQUE_KEY: tuple[str, ...] = (
    "JobId",
    "BusinessDate",
    "JobStatusTimestamp",
    "ApplicationId",
)

job_status = Table(
    TABLE_NAME,
    metadata,
    Column("ApplicationId", Text, nullable=False),
    Column("JobId", Text, nullable=False),
    Column("JobStatusCode", Text, nullable=False),
    Column("JobStatusTimestamp", UTCDateTime(), nullable=False),
    Column("BusinessDate", Date, nullable=False),
    Column("RunId", Text, nullable=True),
    Column("HostId", Text, nullable=True),
    UniqueConstraint(*UNIQUE_KEY),
    comment="One row per job status event.",
)
