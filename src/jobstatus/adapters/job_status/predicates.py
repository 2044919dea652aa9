"""Parameterized equality predicates over the ``"JobStatus"`` table.

A filter set is a sparse mapping of wire field name (``jobId``,
``businessDate``, ...) to value. `build_predicate` turns it into a `Predicate`:
the ordered ``(field, value)`` terms of a conjunctive equality condition,
rendered as::

    WHERE "JobId" = :p1 AND "BusinessDate" = :p2

Terms always follow the canonical order of `FIELDS` (the table's column
order), never the order of the caller's mapping. The same set of present
fields therefore always yields the same SQL text and value order.

Usability
---------
A predicate over only low-cardinality fields (e.g. the status code) could
match an unbounded number of rows. `UsabilityPolicy` rejects such filter sets
before any storage call. The default policy needs at least one of
``applicationId``/``jobId`` AND at least one of
``jobStatusTimestamp``/``businessDate``.

The fixed lookups (by job id; by job id and business date) are built with
`fixed_predicate`, which shares the rendering and numbering code but skips the
usability check.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from jobstatus.domain.job_status import (
    JobStatusCode,
    parse_business_date,
    parse_timestamp,
)
from jobstatus.errors import InvalidQueryError, Provenance

from .schema import COLUMN_ORDER, TABLE_NAME

COMPONENT = "predicates"

PLACEHOLDER_PREFIX = "p"


# ============================================================================
#                           Field table
# ============================================================================


def _text(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _status_code(value: Any) -> str:
    return JobStatusCode(value).value


def _timestamp(value: Any) -> datetime:
    timestamp = parse_timestamp(value)
    if timestamp.tzinfo is None or timestamp.utcoffset() is None:
        raise ValueError("timestamp must be timezone-aware")
    return timestamp.astimezone(timezone.utc).replace(microsecond=0)


@dataclass(frozen=True, slots=True)
class FilterField:
    """A filterable field.

    Attributes:
        name: Wire name used in filter sets (``"jobId"``).
        column: Table column it compares against (``"JobId"``).
        coerce: Converts a caller-supplied value to the column's Python type;
            raises ``TypeError``/``ValueError`` on bad input.
    """

    name: str
    column: str
    coerce: Callable[[Any], Any]


#: Canonical field order; matches `COLUMN_ORDER`.
FIELDS: tuple[FilterField, ...] = (
    FilterField("applicationId", "ApplicationId", _text),
    FilterField("jobId", "JobId", _text),
    FilterField("jobStatusCode", "JobStatusCode", _status_code),
    FilterField("jobStatusTimestamp", "JobStatusTimestamp", _timestamp),
    FilterField("businessDate", "BusinessDate", parse_business_date),
    FilterField("runId", "RunId", _text),
    FilterField("hostId", "HostId", _text),
)

FIELDS_BY_NAME: dict[str, FilterField] = {f.name: f for f in FIELDS}


# ============================================================================
#                           Rendering
# ============================================================================


def quote_identifier(name: str) -> str:
    """Quote an SQL identifier, doubling any embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def param_name(position: int) -> str:
    """Bind parameter name for a 1-based position (``p1``, ``p2``, ...)."""
    if position < 1:
        raise ValueError("placeholder positions start at 1")
    return f"{PLACEHOLDER_PREFIX}{position}"


def placeholder(position: int) -> str:
    """Rendered placeholder for a 1-based position (``:p1``, ``:p2``, ...)."""
    return f":{param_name(position)}"


COLUMN_LIST = ", ".join(quote_identifier(c) for c in COLUMN_ORDER)

INSERT_SQL = (
    f"INSERT INTO {quote_identifier(TABLE_NAME)} ({COLUMN_LIST}) "
    f"VALUES ({', '.join(placeholder(i) for i in range(1, len(COLUMN_ORDER) + 1))})"
)

SELECT_SQL = f"SELECT {COLUMN_LIST} FROM {quote_identifier(TABLE_NAME)}"

ORDER_BY_SQL = (
    f"ORDER BY {quote_identifier('JobStatusTimestamp')}, "
    f"{quote_identifier('ApplicationId')}"
)


@dataclass(frozen=True, slots=True)
class Predicate:
    """An ordered conjunction of equality terms."""

    terms: tuple[tuple[FilterField, Any], ...]

    @property
    def fields(self) -> tuple[str, ...]:
        """Wire names of the terms, in order."""
        return tuple(f.name for f, _ in self.terms)

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names of the terms, in order."""
        return tuple(f.column for f, _ in self.terms)

    @property
    def values(self) -> tuple[Any, ...]:
        """Values in placeholder order."""
        return tuple(v for _, v in self.terms)

    @property
    def params(self) -> dict[str, Any]:
        """Bind parameters keyed by placeholder name."""
        return {param_name(i): v for i, (_, v) in enumerate(self.terms, start=1)}

    @property
    def sql(self) -> str:
        """The ``WHERE`` clause, or ``""`` when there are no terms."""
        if not self.terms:
            return ""
        return "WHERE " + " AND ".join(
            f"{quote_identifier(f.column)} = {placeholder(i)}"
            for i, (f, _) in enumerate(self.terms, start=1)
        )

    def select_sql(self) -> str:
        """Full select statement: projection, this predicate, ordering."""
        return " ".join(part for part in (SELECT_SQL, self.sql, ORDER_BY_SQL) if part)

    def matches(self, row: Mapping[str, Any]) -> bool:
        """Evaluate the predicate against a row keyed by column name."""
        return all(row[f.column] == v for f, v in self.terms)


# ============================================================================
#                           Usability
# ============================================================================


@dataclass(frozen=True, slots=True)
class UsabilityPolicy:
    """Which fields must be present for a filter set to be safe to run.

    A filter set is usable iff, for every anchor group, at least one of the
    group's fields is present.

    Attributes:
        anchor_groups: Groups of wire field names.
    """

    anchor_groups: tuple[tuple[str, ...], ...]

    def __post_init__(self) -> None:
        if not self.anchor_groups:
            raise ValueError("a policy needs at least one anchor group")
        for group in self.anchor_groups:
            if not group:
                raise ValueError("anchor groups must not be empty")
            if unknown := [name for name in group if name not in FIELDS_BY_NAME]:
                raise ValueError(f"unknown anchor fields: {', '.join(unknown)}")

    def is_usable(self, present: Collection[str]) -> bool:
        """Return True if ``present`` satisfies every anchor group."""
        return all(
            any(name in present for name in group) for group in self.anchor_groups
        )

    def describe(self) -> str:
        """Human-readable statement of the rule."""
        return " and ".join(
            f"at least one of {', '.join(group)}" for group in self.anchor_groups
        )


DEFAULT_POLICY = UsabilityPolicy(
    anchor_groups=(
        ("applicationId", "jobId"),
        ("jobStatusTimestamp", "businessDate"),
    )
)


# ============================================================================
#                           Builders
# ============================================================================


def _is_zero(value: Any) -> bool:
    return value is None or value == ""


def normalize_filters(
    filters: Mapping[str, Any], operation: str = "normalize_filters"
) -> dict[str, Any]:
    """Validate and coerce a filter set.

    Args:
        filters: Wire field name -> value.
        operation: Operation name recorded in error provenance.

    Returns:
        dict[str, Any]: Present fields only, coerced, in canonical order.

    Raises:
        InvalidQueryError: On unknown field names or values that cannot be
            coerced to the field's type.
    """
    where = Provenance(COMPONENT, operation)
    if unknown := sorted(
        (str(name) for name in filters if name not in FIELDS_BY_NAME), key=str
    ):
        raise InvalidQueryError(
            f"unknown filter fields: {', '.join(unknown)}",
            dict(filters),
            provenance=where,
        )

    normalized: dict[str, Any] = {}
    for field in FIELDS:
        value = filters.get(field.name)
        if _is_zero(value):
            continue
        try:
            normalized[field.name] = field.coerce(value)
        except (TypeError, ValueError, AttributeError) as e:
            raise InvalidQueryError(
                f"invalid value for {field.name}: {value!r} ({e})",
                dict(filters),
                provenance=where,
            ) from e
    return normalized


def _predicate(normalized: Mapping[str, Any]) -> Predicate:
    return Predicate(
        tuple(
            (field, normalized[field.name])
            for field in FIELDS
            if field.name in normalized
        )
    )


def build_predicate(
    filters: Mapping[str, Any], policy: UsabilityPolicy = DEFAULT_POLICY
) -> Predicate:
    """Build the predicate for a caller-supplied filter set.

    Args:
        filters: Wire field name -> value. ``None`` and ``""`` count as absent.
        policy: Usability rule to enforce.

    Returns:
        Predicate: Terms in canonical field order.

    Raises:
        InvalidQueryError: If the filter set has unknown fields or bad values,
            or does not satisfy ``policy``.
    """
    normalized = normalize_filters(filters, "build_predicate")
    if not policy.is_usable(normalized.keys()):
        raise InvalidQueryError(
            f"filter set is too broad; it needs {policy.describe()}",
            dict(filters),
            provenance=Provenance(COMPONENT, "build_predicate"),
        )
    return _predicate(normalized)


def fixed_predicate(**values: Any) -> Predicate:
    """Build one of the pre-built lookups (e.g. ``fixed_predicate(jobId=...)``).

    Every given value must be present; no usability rule applies.

    Raises:
        InvalidQueryError: If a value is missing, unknown, or malformed.
    """
    normalized = normalize_filters(values, "fixed_predicate")
    if missing := [name for name in values if name not in normalized]:
        raise InvalidQueryError(
            f"missing value for {', '.join(missing)}",
            dict(values),
            provenance=Provenance(COMPONENT, "fixed_predicate"),
        )
    return _predicate(normalized)
