"""Configuration utilities for JOBSTATUS.

All settings come from the environment:

- ``JOBSTATUS_DB_URL``: SQLAlchemy URL of the job status database.
- ``JOBSTATUS_QUERY_ANCHORS``: optional override of the query usability rule,
  as ``;``-separated groups of ``,``-separated field names, e.g.
  ``applicationId,jobId;jobStatusTimestamp,businessDate``.
"""

import os

from jobstatus.adapters.job_status.predicates import DEFAULT_POLICY, UsabilityPolicy

DB_URL_ENV = "JOBSTATUS_DB_URL"  # pragma: no mutate
QUERY_ANCHORS_ENV = "JOBSTATUS_QUERY_ANCHORS"  # pragma: no mutate


class DatabaseUrlNotSetError(Exception):
    """Raised when the JOBSTATUS_DB_URL environment variable is not set."""


def get_db_url() -> str:
    """Get the database URL from the environment.

    Returns:
        The value of the `JOBSTATUS_DB_URL` environment variable.

    Raises:
        DatabaseUrlNotSetError: If `JOBSTATUS_DB_URL` is not set or empty.
    """
    if not (url := os.environ.get(DB_URL_ENV)):
        raise DatabaseUrlNotSetError
    return url


def parse_anchor_groups(value: str) -> tuple[tuple[str, ...], ...]:
    """Parse ``"a,b;c,d"`` into ``(("a", "b"), ("c", "d"))``.

    Empty groups and surrounding whitespace are dropped.
    """
    groups = []
    for raw_group in value.split(";"):
        if names := tuple(n.strip() for n in raw_group.split(",") if n.strip()):
            groups.append(names)
    return tuple(groups)


def query_policy_from_env() -> UsabilityPolicy:
    """Build the query usability policy from `JOBSTATUS_QUERY_ANCHORS`.

    Returns:
        The configured policy, or the default one when the variable is unset.

    Raises:
        ValueError: If the variable names unknown fields or has no groups.
    """
    if not (value := os.environ.get(QUERY_ANCHORS_ENV, "").strip()):
        return DEFAULT_POLICY
    if not (groups := parse_anchor_groups(value)):
        raise ValueError(f"{QUERY_ANCHORS_ENV} has no field groups: {value!r}")
    return UsabilityPolicy(anchor_groups=groups)
