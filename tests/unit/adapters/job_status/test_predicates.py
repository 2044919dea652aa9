"""Unit tests for the predicate builder and the usability rule.

Covers:
- the default usability truth table (anchor groups),
- canonical term order regardless of mapping order,
- identifier quoting and ``:p1..:pN`` numbering,
- value coercion and rejection of unknown fields/bad values,
- the fixed lookups, which skip the usability rule.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from itertools import combinations

import pytest

from jobstatus.adapters.job_status.predicates import (
    DEFAULT_POLICY,
    FIELDS,
    INSERT_SQL,
    ORDER_BY_SQL,
    SELECT_SQL,
    UsabilityPolicy,
    build_predicate,
    fixed_predicate,
    param_name,
    placeholder,
    quote_identifier,
)
from jobstatus.errors import InvalidQueryError, Provenance

VALUES = {
    "applicationId": "App1",
    "jobId": "J1",
    "jobStatusCode": "START",
    "jobStatusTimestamp": "2023-07-01T10:00:00Z",
    "businessDate": "2023-07-01",
    "runId": "R1",
    "hostId": "H1",
}

IDENTITY_FIELDS = {"applicationId", "jobId"}
TIME_FIELDS = {"jobStatusTimestamp", "businessDate"}


def _all_subsets():
    names = list(VALUES)
    for size in range(len(names) + 1):
        yield from combinations(names, size)


class TestRendering:
    """Tests for identifier quoting and placeholder numbering."""

    @staticmethod
    def test_quote_identifier_preserves_case_and_escapes_quotes() -> None:
        """Mixed-case names are quoted; embedded quotes are doubled."""
        assert quote_identifier("JobId") == '"JobId"'
        assert quote_identifier('we"ird') == '"we""ird"'

    @staticmethod
    def test_placeholders_are_one_based() -> None:
        """Positions start at 1."""
        assert param_name(1) == "p1"
        assert placeholder(3) == ":p3"
        with pytest.raises(ValueError):
            param_name(0)

    @staticmethod
    def test_insert_lists_every_column_in_order() -> None:
        """The insert statement binds seven parameters in column order."""
        assert INSERT_SQL == (
            'INSERT INTO "JobStatus" ("ApplicationId", "JobId", "JobStatusCode", '
            '"JobStatusTimestamp", "BusinessDate", "RunId", "HostId") '
            "VALUES (:p1, :p2, :p3, :p4, :p5, :p6, :p7)"
        )

    @staticmethod
    def test_select_orders_by_timestamp_then_application() -> None:
        """Results are ordered by timestamp, then application id."""
        assert ORDER_BY_SQL == 'ORDER BY "JobStatusTimestamp", "ApplicationId"'
        assert SELECT_SQL.startswith('SELECT "ApplicationId", "JobId"')


class TestBuildPredicate:
    """Tests for build_predicate."""

    @staticmethod
    def test_renders_where_clause() -> None:
        """Terms render as quoted equality comparisons joined by AND."""
        predicate = build_predicate({"jobId": "J1", "businessDate": "2023-07-01"})
        assert predicate.sql == 'WHERE "JobId" = :p1 AND "BusinessDate" = :p2'
        assert predicate.params == {"p1": "J1", "p2": date(2023, 7, 1)}
        assert predicate.select_sql() == f"{SELECT_SQL} {predicate.sql} {ORDER_BY_SQL}"

    @staticmethod
    def test_terms_follow_canonical_order_not_input_order() -> None:
        """Mapping order never changes the SQL or the value order."""
        forward = build_predicate(dict(VALUES))
        backward = build_predicate(dict(reversed(list(VALUES.items()))))
        assert forward.sql == backward.sql
        assert forward.values == backward.values
        assert forward.fields == tuple(f.name for f in FIELDS)

    @staticmethod
    def test_placeholder_count_matches_terms() -> None:
        """Every present field gets exactly one placeholder, numbered 1..N."""
        predicate = build_predicate(VALUES)
        for i in range(1, len(VALUES) + 1):
            assert f":p{i}" in predicate.sql
        assert f":p{len(VALUES) + 1}" not in predicate.sql
        assert len(predicate.values) == len(VALUES)

    @staticmethod
    @pytest.mark.parametrize("empty", [None, ""])
    def test_empty_values_count_as_absent(empty) -> None:
        """None and empty string are treated as not supplied."""
        predicate = build_predicate(
            {"jobId": "J1", "businessDate": "2023-07-01", "runId": empty}
        )
        assert predicate.fields == ("jobId", "businessDate")

    @staticmethod
    def test_values_are_coerced_to_column_types() -> None:
        """Timestamps become aware UTC datetimes and dates become dates."""
        predicate = build_predicate(
            {
                "applicationId": "App1",
                "jobStatusTimestamp": "2023-07-01T12:00:00.500000+02:00",
                "businessDate": datetime(2023, 7, 1, 23, tzinfo=timezone.utc),
            }
        )
        assert predicate.values == (
            "App1",
            datetime(2023, 7, 1, 10, tzinfo=timezone.utc),
            date(2023, 7, 1),
        )

    @staticmethod
    def test_unknown_field_is_invalid_query() -> None:
        """Unknown names are rejected rather than ignored."""
        with pytest.raises(InvalidQueryError, match="unknown filter fields: status"):
            build_predicate({"jobId": "J1", "businessDate": "2023-07-01", "status": "x"})

    @staticmethod
    def test_non_string_field_name_is_invalid_query() -> None:
        """Keys of any type are reported, not crashed on."""
        filters = {1: "x", "jobId": "J1", "businessDate": "2023-07-01", None: "y"}
        with pytest.raises(InvalidQueryError, match="unknown filter fields: 1, None"):
            build_predicate(filters)  # type: ignore[arg-type]

    @staticmethod
    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("jobStatusCode", "RUNNING"),
            ("jobStatusTimestamp", "2023-07-01T10:00:00"),  # naive
            ("jobStatusTimestamp", "soon"),
            ("businessDate", "July 1st"),
            ("runId", 7),
        ],
    )
    def test_bad_value_is_invalid_query(name: str, value) -> None:
        """Values that cannot be coerced are rejected before any SQL runs."""
        filters = {"jobId": "J1", "businessDate": "2023-07-01", name: value}
        with pytest.raises(InvalidQueryError, match=f"invalid value for {name}"):
            build_predicate(filters)

    @staticmethod
    def test_too_broad_filter_set_names_the_rule() -> None:
        """The error explains which fields are needed."""
        with pytest.raises(InvalidQueryError) as exc_info:
            build_predicate({"jobStatusCode": "FAIL"})
        assert "at least one of applicationId, jobId" in str(exc_info.value.error)
        assert exc_info.value.origin == Provenance("predicates", "build_predicate")
        assert exc_info.value.data == {"jobStatusCode": "FAIL"}


class TestUsability:
    """Tests for the default usability rule."""

    @staticmethod
    @pytest.mark.parametrize("present", list(_all_subsets()), ids=lambda s: "+".join(s) or "none")
    def test_default_rule_truth_table(present: tuple[str, ...]) -> None:
        """Usable iff an identity field and a time field are both present."""
        expected = bool(IDENTITY_FIELDS & set(present)) and bool(
            TIME_FIELDS & set(present)
        )
        assert DEFAULT_POLICY.is_usable(present) is expected

        filters = {name: VALUES[name] for name in present}
        if expected:
            assert build_predicate(filters).fields == tuple(
                f.name for f in FIELDS if f.name in present
            )
        else:
            with pytest.raises(InvalidQueryError):
                build_predicate(filters)

    @staticmethod
    def test_custom_policy() -> None:
        """A custom policy replaces the default anchors."""
        policy = UsabilityPolicy(anchor_groups=(("hostId",),))
        assert build_predicate({"hostId": "H1"}, policy).fields == ("hostId",)
        with pytest.raises(InvalidQueryError, match="at least one of hostId"):
            build_predicate({"jobId": "J1", "businessDate": "2023-07-01"}, policy)

    @staticmethod
    @pytest.mark.parametrize("groups", [(), ((),), (("jobId", "status"),)])
    def test_policy_rejects_bad_groups(groups) -> None:
        """No groups, empty groups and unknown field names are configuration errors."""
        with pytest.raises(ValueError):
            UsabilityPolicy(anchor_groups=groups)


class TestFixedPredicate:
    """Tests for the pre-built lookups."""

    @staticmethod
    def test_job_id_lookup_skips_usability() -> None:
        """A job-id-only lookup is allowed even though it has no time anchor."""
        predicate = fixed_predicate(jobId="J1")
        assert predicate.sql == 'WHERE "JobId" = :p1'
        assert predicate.params == {"p1": "J1"}

    @staticmethod
    def test_job_id_and_business_date_lookup() -> None:
        """The two-field lookup numbers its placeholders in canonical order."""
        predicate = fixed_predicate(businessDate=date(2023, 7, 1), jobId="J1")
        assert predicate.sql == 'WHERE "JobId" = :p1 AND "BusinessDate" = :p2'
        assert predicate.values == ("J1", date(2023, 7, 1))

    @staticmethod
    @pytest.mark.parametrize("job_id", ["", None])
    def test_missing_value_is_invalid_query(job_id) -> None:
        """Every value of a fixed lookup must be supplied."""
        with pytest.raises(InvalidQueryError, match="missing value for jobId"):
            fixed_predicate(jobId=job_id)


def test_matches_evaluates_rows_by_column() -> None:
    """Predicate.matches compares every term against a column-keyed row."""
    predicate = fixed_predicate(jobId="J1", businessDate=date(2023, 7, 1))
    row = {"JobId": "J1", "BusinessDate": date(2023, 7, 1), "ApplicationId": "A"}
    assert predicate.matches(row)
    assert not predicate.matches({**row, "BusinessDate": date(2023, 7, 2)})
