"""In-memory JobStatusRepo.

Rows are kept in a list of column -> value mappings and are lost when the
instance is discarded. Records go through the same mapper and predicate
builder as the SQL adapter, so the same contract tests apply.

Use for unit tests, prototyping, or scenarios where durability is not required.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from jobstatus.errors import (
    CommonError,
    ConnectionExceptionError,
    DuplicateRowError,
    Provenance,
)
from jobstatus.interfaces import JobStatusRepo

from .mapper import domain_to_row, rows_to_domain
from .predicates import (
    DEFAULT_POLICY,
    Predicate,
    UsabilityPolicy,
    build_predicate,
    fixed_predicate,
)
from .schema import COLUMN_ORDER, UNIQUE_KEY

if TYPE_CHECKING:
    from jobstatus.domain import JobStatus


class InMemoryJobStatusRepo(JobStatusRepo):
    """Non-durable JobStatusRepo for tests and prototyping.

    The stored rows survive ``close()``/``open()`` cycles of the same instance.
    A lock serializes access to the rows, standing in for the storage engine.
    """

    def __init__(self, *, policy: UsabilityPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy
        self._rows: list[dict[str, Any]] = []
        self._is_open = False
        self._lock = threading.Lock()

    def open(self) -> None:
        self._is_open = True

    def close(self) -> None:
        self._is_open = False

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def add(self, job_status: JobStatus) -> None:
        where = self._where("add")
        self._require_open(job_status, where)
        row = dict(zip(COLUMN_ORDER, domain_to_row(job_status)))
        key = tuple(row[name] for name in UNIQUE_KEY)
        with self._lock:
            if any(tuple(r[name] for name in UNIQUE_KEY) == key for r in self._rows):
                raise DuplicateRowError(
                    f"duplicate key {dict(zip(UNIQUE_KEY, key))}",
                    job_status,
                    provenance=where,
                )
            self._rows.append(row)

    def get_by_job_id(self, job_id: str) -> list[JobStatus]:
        where = self._where("get_by_job_id")
        try:
            predicate = fixed_predicate(jobId=job_id)
        except CommonError as e:
            raise e.wrap(where)
        return self._select(predicate, {"jobId": job_id}, where)

    def get_by_job_id_business_date(
        self, job_id: str, business_date: date
    ) -> list[JobStatus]:
        where = self._where("get_by_job_id_business_date")
        try:
            predicate = fixed_predicate(jobId=job_id, businessDate=business_date)
        except CommonError as e:
            raise e.wrap(where)
        return self._select(
            predicate, {"jobId": job_id, "businessDate": business_date}, where
        )

    def get_by_query(self, filters: Mapping[str, Any]) -> list[JobStatus]:
        where = self._where("get_by_query")
        try:
            predicate = build_predicate(filters, self.policy)
        except CommonError as e:
            raise e.wrap(where)
        return self._select(predicate, dict(filters), where)

    # --------------------------------------------------------------------- #
    # Internals
    # --------------------------------------------------------------------- #

    def _where(self, operation: str) -> Provenance:
        return Provenance(type(self).__name__, operation)

    def _require_open(self, data: Any, where: Provenance) -> None:
        if not self._is_open:
            raise ConnectionExceptionError(
                "repository is not open", data, provenance=where
            )

    def _select(
        self, predicate: Predicate, data: Any, where: Provenance
    ) -> list[JobStatus]:
        self._require_open(data, where)
        with self._lock:
            matching = sorted(
                (r for r in self._rows if predicate.matches(r)),
                key=lambda r: (r["JobStatusTimestamp"], r["ApplicationId"]),
            )
        try:
            return rows_to_domain(
                tuple(r[name] for name in COLUMN_ORDER) for r in matching
            )
        except CommonError as e:
            raise e.wrap(where)
