"""Repository port for job-status records.

Defines the `JobStatusRepo` abstraction implemented once per storage
technology. Implementations share the mapper, the predicate builder and the
error taxonomy in `jobstatus.errors`; callers only ever see those error kinds,
never driver exceptions.

Contract overview
-----------------
- ``open()`` / ``close()`` bracket the storage connection. ``close()`` is a
  no-op when never opened. The repo is also a context manager.
- ``add()`` persists exactly one row or none. A second add of the same
  ``(job_id, business_date, job_status_timestamp, application_id)`` raises
  `DuplicateRowError`.
- Reads return a list. Zero matching rows is an empty list, not an error.
- ``get_by_query()`` rejects unusable filter sets with `InvalidQueryError`
  before any storage call.
- No operation retries. `ConnectionExceptionError.retryable` is the hint for
  callers that want to.
"""

from __future__ import annotations

import abc
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from jobstatus.domain import JobStatus


class JobStatusRepo(abc.ABC):
    """Persistence port for `JobStatus` records."""

    def __enter__(self) -> JobStatusRepo:
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @abc.abstractmethod
    def open(self) -> None:
        """Acquire the storage connection; no-op if already open.

        Raises:
            NoDsnError: If no connection target is configured.
            ConnectionExceptionError: If the connection cannot be established.
        """

    @abc.abstractmethod
    def close(self) -> None:
        """Release the storage connection; no-op if never opened."""

    @abc.abstractmethod
    def add(self, job_status: JobStatus) -> None:
        """Persist one job status.

        Args:
            job_status: The record to insert.

        Raises:
            DuplicateRowError: If the record's unique key already exists.
            ConnectionExceptionError: If storage is unreachable.
            RepoOtherError: For any other storage failure.
        """

    @abc.abstractmethod
    def get_by_job_id(self, job_id: str) -> list[JobStatus]:
        """Return every job status recorded for ``job_id``.

        Raises:
            ScanError: If a stored row cannot be decoded.
            PropsError: If a stored row fails domain validation.
            ConnectionExceptionError, RepoOtherError: On storage failure.
        """

    @abc.abstractmethod
    def get_by_job_id_business_date(
        self, job_id: str, business_date: date
    ) -> list[JobStatus]:
        """Return every job status for ``job_id`` on ``business_date``.

        Raises:
            ScanError: If a stored row cannot be decoded.
            PropsError: If a stored row fails domain validation.
            ConnectionExceptionError, RepoOtherError: On storage failure.
        """

    @abc.abstractmethod
    def get_by_query(self, filters: Mapping[str, Any]) -> list[JobStatus]:
        """Return every job status matching all of ``filters``.

        Args:
            filters: Wire field name -> value. ``None`` and ``""`` are ignored.

        Raises:
            InvalidQueryError: If the filter set is unknown, malformed, or too
                broad to run. Raised before storage is touched.
            ScanError, PropsError, ConnectionExceptionError, RepoOtherError:
                As for the other reads.
        """
