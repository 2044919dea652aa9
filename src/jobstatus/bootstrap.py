"""Wire up a ready-to-use job status repository."""

from __future__ import annotations

import logging

from jobstatus import config
from jobstatus.adapters.job_status import SqlAlchemyJobStatusRepo
from jobstatus.errors import CommonError
from jobstatus.interfaces import JobStatusRepo
from jobstatus.logging import log_error

logger = logging.getLogger(__name__)


def build_repo(url: str | None = None) -> JobStatusRepo:
    """Create and open the SQLAlchemy repository.

    Args:
        url: Database URL. Defaults to ``JOBSTATUS_DB_URL``.

    Returns:
        JobStatusRepo: An open repository; the caller must close it.

    Raises:
        config.DatabaseUrlNotSetError: If no URL is given or configured.
        ValueError: If ``JOBSTATUS_QUERY_ANCHORS`` is malformed.
        CommonError: If the repository cannot be opened.
    """
    if url is None:
        url = config.get_db_url()

    logger.info("Creating job status repository")
    repo = SqlAlchemyJobStatusRepo(url, policy=config.query_policy_from_env())

    logger.info("Opening database")
    try:
        repo.open()
    except CommonError as e:
        log_error(logger, "Database connection failed", e, call_stack="build_repo")
        raise
    return repo
