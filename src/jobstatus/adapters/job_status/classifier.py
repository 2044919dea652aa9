"""Classification of storage-driver failures.

SQLAlchemy wraps every DB-API exception in a ``DBAPIError`` subclass and keeps
the driver's own exception on ``.orig``. This module inspects both and maps the
failure to one of the driver-agnostic repository error kinds:

| Signal                                                      | Kind                       |
|-------------------------------------------------------------|----------------------------|
| SQLSTATE 23505, SQLITE_CONSTRAINT_UNIQUE / _PRIMARYKEY      | `DuplicateRowError`        |
| SQLSTATE class 08, 57P01-57P03                              | `ConnectionExceptionError` |
| invalidated connection, pool timeout, ``InterfaceError``    | `ConnectionExceptionError` |
| ``OperationalError`` without SQLSTATE (psycopg connect)     | `ConnectionExceptionError` |
| SQLITE_CANTOPEN, SQLITE_NOTADB, SQLITE_IOERR*               | `ConnectionExceptionError` |
| ``OSError`` / ``ConnectionError`` outside of SQLAlchemy     | `ConnectionExceptionError` |
| anything else                                               | `RepoOtherError`           |

PostgreSQL codes are read from ``sqlstate`` (psycopg 3) or ``pgcode``
(psycopg 2). SQLite names are read from ``sqlite_errorname`` (Python 3.11+).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from jobstatus.errors import (
    ConnectionExceptionError,
    DuplicateRowError,
    Provenance,
    RepoError,
    RepoOtherError,
)

UNIQUE_VIOLATION = "23505"  # pragma: no mutate
CONNECTION_EXCEPTION_CLASS = "08"  # pragma: no mutate
# admin_shutdown, crash_shutdown, cannot_connect_now
SERVER_SHUTDOWN_STATES = frozenset({"57P01", "57P02", "57P03"})

SQLITE_DUPLICATE_NAMES = frozenset(
    {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
)
SQLITE_CONNECTION_NAMES = frozenset({"SQLITE_CANTOPEN", "SQLITE_NOTADB"})
SQLITE_IO_PREFIX = "SQLITE_IOERR"  # pragma: no mutate

# all keywords must be present in the message
UNIQUE_MESSAGE_KEYWORDS = ("unique",)  # pragma: no mutate


def sqlstate_of(error: BaseException) -> str | None:
    """Return the PostgreSQL SQLSTATE carried by a driver error, if any."""
    orig = getattr(error, "orig", error)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return code if isinstance(code, str) and code else None


def sqlite_error_name(error: BaseException) -> str | None:
    """Return the SQLite extended error name carried by a driver error, if any."""
    orig = getattr(error, "orig", error)
    name = getattr(orig, "sqlite_errorname", None)
    return name if isinstance(name, str) and name else None


def _message(error: BaseException) -> str:
    orig: Any = getattr(error, "orig", None)
    return str(orig) if orig not in (None, "") else str(error)


def classify_db_error(error: BaseException) -> type[RepoError]:
    """Map a storage failure to a repository error kind.

    Args:
        error: Any exception raised by a storage call.

    Returns:
        type[RepoError]: `DuplicateRowError`, `ConnectionExceptionError` or
        `RepoOtherError`.
    """
    # pylint: disable=too-many-return-statements
    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return ConnectionExceptionError
    if isinstance(error, (DisconnectionError, PoolTimeoutError)):
        return ConnectionExceptionError

    if sqlstate := sqlstate_of(error):
        if sqlstate == UNIQUE_VIOLATION:
            return DuplicateRowError
        if (
            sqlstate.startswith(CONNECTION_EXCEPTION_CLASS)
            or sqlstate in SERVER_SHUTDOWN_STATES
        ):
            return ConnectionExceptionError
        return RepoOtherError

    if name := sqlite_error_name(error):
        if name in SQLITE_DUPLICATE_NAMES:
            return DuplicateRowError
        if name in SQLITE_CONNECTION_NAMES or name.startswith(SQLITE_IO_PREFIX):
            return ConnectionExceptionError
        return RepoOtherError

    # no driver code available: fall back on exception classes and messages
    if isinstance(error, IntegrityError):
        msg = _message(error).lower()
        if all(kw in msg for kw in UNIQUE_MESSAGE_KEYWORDS):
            return DuplicateRowError
        return RepoOtherError
    if isinstance(error, (InterfaceError, OperationalError)):
        return ConnectionExceptionError
    if not isinstance(error, DBAPIError) and isinstance(error, OSError):
        # ConnectionError and socket failures raised below SQLAlchemy
        return ConnectionExceptionError
    return RepoOtherError


def classify(error: BaseException, data: Any, provenance: Provenance) -> RepoError:
    """Build the classified error for a storage failure.

    Args:
        error: The storage exception.
        data: What was being operated on.
        provenance: Where the failure was detected.

    Returns:
        RepoError: An error of the kind chosen by `classify_db_error`.
    """
    return classify_db_error(error)(error, data, provenance=provenance)
