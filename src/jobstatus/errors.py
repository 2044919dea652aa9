"""Classified errors shared by every JOBSTATUS layer.

Every failure that leaves the core is a `CommonError`: an exception tagged with
a machine-stable ``code`` from a closed taxonomy, the underlying error, an
opaque ``data`` payload describing what was being operated on, and a chain of
`Provenance` entries recording where the error was first raised and every
place it was re-wrapped on its way up.

Taxonomy
--------
| Class                      | Raised by                                   |
|----------------------------|---------------------------------------------|
| `PropsError`               | domain construction (invalid field values)  |
| `UnexpectedError`          | wrapping of any unclassified exception      |
| `ConnectionExceptionError` | open, or any storage call during an outage  |
| `ScanError`                | decoding a result row                       |
| `DuplicateRowError`        | unique-constraint violation on insert       |
| `InvalidQueryError`        | filter set failed the usability rule        |
| `RepoOtherError`           | any storage failure not otherwise classified|
| `NoDsnError`               | repository opened without a database URL    |

Propagation
-----------
Errors are never mutated. `CommonError.wrap` returns a *new* error of the same
class carrying the same code, underlying error and payload, with one more
provenance entry appended. The rendered message lists the chain outermost
first, so an error is diagnosable end-to-end without a captured traceback::

    SqlAlchemyJobStatusRepo::get_by_job_id <- mapper::row_to_domain Code ScanError | ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

__all__ = [
    "CommonError",
    "ConnectionExceptionError",
    "DuplicateRowError",
    "ERROR_KINDS",
    "InvalidQueryError",
    "NoDsnError",
    "PropsError",
    "Provenance",
    "RepoError",
    "RepoOtherError",
    "ScanError",
    "UnexpectedError",
    "wrap_error",
]


@dataclass(frozen=True, slots=True)
class Provenance:
    """Where an error was raised or re-wrapped.

    Attributes:
        component: The class or module doing the work (e.g. ``"mapper"``).
        operation: The operation being performed (e.g. ``"row_to_domain"``).
    """

    component: str
    operation: str

    def __str__(self) -> str:
        return f"{self.component}::{self.operation}"


class CommonError(Exception):
    """Base class for all classified JOBSTATUS errors.

    Attributes:
        code: Machine-stable error code; one per subclass.
        retryable: Hint for callers deciding on a retry policy.
        error: The underlying exception, or a short description when the
            failure was detected rather than caught.
        data: What was being operated on (a key, a filter set, a record).
        provenance: Origin first, then each re-wrap in order.
    """

    code: ClassVar[str] = "CommonError"
    retryable: ClassVar[bool] = False

    def __init__(
        self,
        error: BaseException | str,
        data: Any = None,
        *,
        provenance: Provenance | tuple[Provenance, ...] = (),
    ) -> None:
        if isinstance(provenance, Provenance):
            provenance = (provenance,)
        self.error = error
        self.data = data
        self.provenance: tuple[Provenance, ...] = tuple(provenance)
        super().__init__(self._render())
        if isinstance(error, BaseException):
            self.__cause__ = error

    @property
    def origin(self) -> Provenance | None:
        """The provenance entry where the error was first raised, if any."""
        return self.provenance[0] if self.provenance else None

    def wrap(self, provenance: Provenance) -> CommonError:
        """Return a copy of this error with ``provenance`` appended.

        The class, code, underlying error and payload are preserved.
        """
        return type(self)(
            self.error, self.data, provenance=(*self.provenance, provenance)
        )

    def _render(self) -> str:
        where = " <- ".join(str(p) for p in reversed(self.provenance))
        return f"{where or 'unknown caller'} Code {self.code} | {self.error}"


# --- domain / application -------------------------------------------------


class PropsError(CommonError):
    """A record could not be constructed because its field values are invalid."""

    code = "PropsError"


class UnexpectedError(CommonError):
    """An exception that no layer classified."""

    code = "UnexpectedError"


# --- repository -------------------------------------------------------------


class RepoError(CommonError):
    """Base class for repository errors."""

    code = "RepoError"


class ConnectionExceptionError(RepoError):
    """Storage could not be reached or the connection broke mid-call."""

    code = "ConnectionExceptionError"
    retryable = True


class ScanError(RepoError):
    """A result row could not be decoded into the expected column types."""

    code = "ScanError"


class DuplicateRowError(RepoError):
    """The uniqueness constraint on the job-status key was violated."""

    code = "DuplicateRowError"


class InvalidQueryError(RepoError):
    """A filter set was rejected before reaching storage."""

    code = "InvalidQueryError"


class RepoOtherError(RepoError):
    """A storage failure that does not fit any other kind."""

    code = "RepoOtherError"


class NoDsnError(RepoError):
    """The repository was opened without a database URL."""

    code = "NoDsnError"


#: Every concrete error kind, keyed by code.
ERROR_KINDS: dict[str, type[CommonError]] = {
    cls.code: cls
    for cls in (
        PropsError,
        UnexpectedError,
        ConnectionExceptionError,
        ScanError,
        DuplicateRowError,
        InvalidQueryError,
        RepoOtherError,
        NoDsnError,
    )
}


def wrap_error(error: BaseException, provenance: Provenance) -> CommonError:
    """Attach ``provenance`` to any exception.

    Already-classified errors keep their kind and gain a provenance entry.
    Anything else becomes an `UnexpectedError` originating at ``provenance``.

    Args:
        error: The exception being propagated.
        provenance: Where the propagation happens.

    Returns:
        CommonError: The wrapped error, ready to raise.
    """
    if isinstance(error, CommonError):
        return error.wrap(provenance)
    return UnexpectedError(error, provenance=provenance)
