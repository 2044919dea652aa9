"""SQLAlchemy-backed JobStatusRepo.

Statements are hand-written SQL built by `predicates` (quoted mixed-case
identifiers, ``:p1..:pN`` placeholders) and executed through ``text()`` with
typed bind parameters and typed result columns, so `UTCDateTime` and ``Date``
processing applies on both PostgreSQL and SQLite.

Every storage failure is classified by `classifier.classify` and raised as a
repository error kind; the driver exception is kept as ``__cause__``.

The Engine owns pooling and is safe to share between threads; this class adds
no locking. ``open()`` is the only method that changes ``self.engine``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, column, text
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from jobstatus.adapters.db.engine import Backend, UnsupportedBackend, make_engine
from jobstatus.errors import (
    CommonError,
    ConnectionExceptionError,
    NoDsnError,
    Provenance,
    ScanError,
)
from jobstatus.interfaces import JobStatusRepo

from .classifier import classify
from .mapper import domain_to_row, rows_to_domain
from .predicates import (
    DEFAULT_POLICY,
    INSERT_SQL,
    Predicate,
    UsabilityPolicy,
    build_predicate,
    fixed_predicate,
    param_name,
)
from .schema import COLUMN_ORDER, job_status

if TYPE_CHECKING:
    from sqlalchemy.engine import URL, Engine
    from sqlalchemy.sql.elements import TextClause
    from sqlalchemy.sql.selectable import TextualSelect

    from jobstatus.domain import JobStatus

logger = logging.getLogger(__name__)

PROBE_SQL = "SELECT 1"  # pragma: no mutate


def _typed_params(columns: tuple[str, ...]) -> list:
    return [
        bindparam(param_name(i), type_=job_status.c[name].type)
        for i, name in enumerate(columns, start=1)
    ]


def insert_statement() -> TextClause:
    """The insert statement, parameters ``:p1..:p7`` in `COLUMN_ORDER`."""
    return text(INSERT_SQL).bindparams(*_typed_params(COLUMN_ORDER))


def select_statement(predicate: Predicate) -> TextualSelect:
    """The select statement for ``predicate``, result columns in `COLUMN_ORDER`."""
    return (
        text(predicate.select_sql())
        .bindparams(*_typed_params(predicate.columns))
        .columns(*(column(name, job_status.c[name].type) for name in COLUMN_ORDER))
    )


class SqlAlchemyJobStatusRepo(JobStatusRepo):
    """JobStatusRepo over PostgreSQL or SQLite.

    Args:
        url: SQLAlchemy database URL. May be empty, in which case ``open()``
            raises `NoDsnError`.
        policy: Usability rule for ``get_by_query``.
        check_connection: If True, ``open()`` runs a probe query so that an
            unreachable database fails at open time.
        echo: Log every SQL statement (SQLAlchemy ``echo``).
    """

    def __init__(
        self,
        url: str | URL | None,
        *,
        policy: UsabilityPolicy = DEFAULT_POLICY,
        check_connection: bool = True,
        echo: bool = False,
    ) -> None:
        self.url = url
        self.policy = policy
        self.check_connection = check_connection
        self.echo = echo
        self.engine: Engine | None = None

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    def open(self) -> None:
        if self.engine is not None:
            return
        where = self._where("open")
        if not self.url:
            raise NoDsnError("no database URL configured", provenance=where)

        try:
            engine = make_engine(self.url, echo=self.echo)
            Backend.of(engine)
        except (ArgumentError, UnsupportedBackend, ImportError) as e:
            raise ConnectionExceptionError(e, provenance=where) from e

        if self.check_connection:
            try:
                with engine.connect() as conn:
                    conn.execute(text(PROBE_SQL))
            except (SQLAlchemyError, OSError) as e:
                engine.dispose()
                raise classify(e, None, where) from e

        self.engine = engine
        logger.debug(
            "Opened job status repository at %s",
            engine.url.render_as_string(hide_password=True),
        )

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            logger.debug("Closed job status repository")

    # --------------------------------------------------------------------- #
    # Interface implementation
    # --------------------------------------------------------------------- #

    def add(self, job_status: JobStatus) -> None:
        where = self._where("add")
        engine = self._require_engine(job_status, where)
        params = {
            param_name(i): value
            for i, value in enumerate(domain_to_row(job_status), start=1)
        }
        try:
            # single statement; begin() commits on success, rolls back on error
            with engine.begin() as conn:
                conn.execute(insert_statement(), params)
        except (SQLAlchemyError, OSError) as e:
            raise classify(e, job_status, where) from e

    def get_by_job_id(self, job_id: str) -> list[JobStatus]:
        where = self._where("get_by_job_id")
        data = {"jobId": job_id}
        try:
            predicate = fixed_predicate(jobId=job_id)
        except CommonError as e:
            raise e.wrap(where)
        return self._select(predicate, data, where)

    def get_by_job_id_business_date(
        self, job_id: str, business_date: date
    ) -> list[JobStatus]:
        where = self._where("get_by_job_id_business_date")
        data = {"jobId": job_id, "businessDate": business_date}
        try:
            predicate = fixed_predicate(jobId=job_id, businessDate=business_date)
        except CommonError as e:
            raise e.wrap(where)
        return self._select(predicate, data, where)

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

    def _require_engine(self, data: Any, where: Provenance) -> Engine:
        if self.engine is None:
            raise ConnectionExceptionError(
                "repository is not open", data, provenance=where
            )
        return self.engine

    def _select(
        self, predicate: Predicate, data: Any, where: Provenance
    ) -> list[JobStatus]:
        """Run ``predicate`` and map every row, or raise.

        Result-processing failures (e.g. an unparsable stored date on SQLite)
        surface while fetching, not while executing, and are scan errors.
        """
        engine = self._require_engine(data, where)
        try:
            with engine.connect() as conn:
                rows = conn.execute(select_statement(predicate), predicate.params).all()
        except (ValueError, TypeError) as e:
            raise ScanError(e, data, provenance=where) from e
        except (SQLAlchemyError, OSError) as e:
            raise classify(e, data, where) from e

        try:
            return rows_to_domain(rows)
        except CommonError as e:
            raise e.wrap(where)
