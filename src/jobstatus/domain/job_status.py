"""The job-status record and its transfer object.

`JobStatusDto` is the loosely typed shape used on the wire and when reading
rows back from storage. `JobStatus` is the validated, immutable domain record.
The only way to build one is `JobStatus.from_dto`, so data read from storage
passes the same checks as data received from a client.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from jobstatus.errors import PropsError, Provenance

MAX_APPLICATION_ID_LENGTH = 200
MAX_JOB_ID_LENGTH = 200
MAX_RUN_ID_LENGTH = 50
MAX_HOST_ID_LENGTH = 150

#: Wire (camelCase) name -> dataclass attribute name.
WIRE_NAMES: dict[str, str] = {
    "applicationId": "application_id",
    "jobId": "job_id",
    "jobStatusCode": "job_status_code",
    "jobStatusTimestamp": "job_status_timestamp",
    "businessDate": "business_date",
    "runId": "run_id",
    "hostId": "host_id",
}

REQUIRED_WIRE_NAMES = (
    "applicationId",
    "jobId",
    "jobStatusCode",
    "jobStatusTimestamp",
    "businessDate",
)


class JobStatusCode(str, Enum):
    """Statuses a job can report."""

    START = "START"
    SUCCEED = "SUCCEED"
    FAIL = "FAIL"


def parse_timestamp(value: datetime | str) -> datetime:
    """Parse an ISO-8601 timestamp; ``Z`` is accepted as UTC."""
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.strip())


def parse_business_date(value: date | str) -> date:
    """Parse a ``YYYY-MM-DD`` date, or reduce a datetime to its UTC date."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value.strip())


def format_timestamp(value: datetime) -> str:
    """Render a UTC timestamp as ``YYYY-MM-DDTHH:MM:SSZ``."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True, slots=True)
class JobStatusDto:
    """Transfer object for a job status.

    Timestamps and dates may be given as ISO strings or as Python objects;
    optional ids may be empty.
    """

    # pylint: disable=too-many-instance-attributes

    application_id: str
    job_id: str
    job_status_code: str
    job_status_timestamp: datetime | str
    business_date: date | str
    run_id: str | None = None
    host_id: str | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> JobStatusDto:
        """Build a DTO from a camelCase mapping (e.g. decoded JSON).

        Raises:
            PropsError: If required keys are missing or unknown keys are present.
        """
        unknown = sorted(set(payload) - set(WIRE_NAMES))
        missing = sorted(
            name for name in REQUIRED_WIRE_NAMES if payload.get(name) in (None, "")
        )
        if unknown or missing:
            problems = []
            if missing:
                problems.append(f"missing fields: {', '.join(missing)}")
            if unknown:
                problems.append(f"unknown fields: {', '.join(unknown)}")
            raise PropsError(
                "; ".join(problems),
                payload,
                provenance=Provenance("JobStatusDto", "from_dict"),
            )
        return cls(**{WIRE_NAMES[k]: v for k, v in payload.items()})

    def to_dict(self) -> dict[str, Any]:
        """Render as a JSON-ready camelCase mapping."""
        timestamp = self.job_status_timestamp
        business_date = self.business_date
        return {
            "applicationId": self.application_id,
            "jobId": self.job_id,
            "jobStatusCode": self.job_status_code,
            "jobStatusTimestamp": (
                format_timestamp(timestamp)
                if isinstance(timestamp, datetime)
                else timestamp
            ),
            "businessDate": (
                business_date.isoformat()
                if isinstance(business_date, date)
                else business_date
            ),
            "runId": self.run_id,
            "hostId": self.host_id,
        }


@dataclass(frozen=True, slots=True)
class JobStatus:
    """A job reaching a status at a point in time.

    Invariants (enforced by `from_dto`):
      - ``application_id`` / ``job_id`` are non-blank and length bounded.
      - ``job_status_timestamp`` is UTC, whole seconds, not in the future.
      - ``business_date`` is not in the future and not after the timestamp's date.
      - ``run_id`` / ``host_id`` are ``None`` or non-empty and length bounded.
    """

    # pylint: disable=too-many-instance-attributes

    application_id: str
    job_id: str
    job_status_code: JobStatusCode
    job_status_timestamp: datetime
    business_date: date
    run_id: str | None = None
    host_id: str | None = None

    @classmethod
    def from_dto(cls, dto: JobStatusDto, *, now: datetime | None = None) -> JobStatus:
        """Validate a DTO and build the domain record.

        Args:
            dto: The candidate values.
            now: Reference time for the "not in the future" checks. Defaults to
                the current UTC time.

        Returns:
            JobStatus: The validated record.

        Raises:
            PropsError: Listing every rule the DTO breaks; the DTO is the payload.
        """
        now = now or datetime.now(timezone.utc)
        problems: list[str] = []

        application_id = _required_text(
            "applicationId", dto.application_id, MAX_APPLICATION_ID_LENGTH, problems
        )
        job_id = _required_text("jobId", dto.job_id, MAX_JOB_ID_LENGTH, problems)
        run_id = _optional_text("runId", dto.run_id, MAX_RUN_ID_LENGTH, problems)
        host_id = _optional_text("hostId", dto.host_id, MAX_HOST_ID_LENGTH, problems)

        code: JobStatusCode | None = None
        try:
            code = JobStatusCode(dto.job_status_code)
        except ValueError:
            valid = ", ".join(c.value for c in JobStatusCode)
            problems.append(
                f"jobStatusCode {dto.job_status_code!r} is not one of {valid}"
            )

        timestamp: datetime | None = None
        try:
            timestamp = parse_timestamp(dto.job_status_timestamp)
        except (TypeError, ValueError, AttributeError):
            problems.append("jobStatusTimestamp is not an ISO-8601 timestamp")
        if timestamp is not None:
            if timestamp.tzinfo is None or timestamp.utcoffset() is None:
                problems.append("jobStatusTimestamp must be timezone-aware")
                timestamp = None
            else:
                timestamp = timestamp.astimezone(timezone.utc).replace(microsecond=0)
                if timestamp > now:
                    problems.append("jobStatusTimestamp is in the future")

        business_date: date | None = None
        try:
            business_date = parse_business_date(dto.business_date)
        except (TypeError, ValueError, AttributeError):
            problems.append("businessDate is not a YYYY-MM-DD date")
        if business_date is not None:
            if business_date > now.astimezone(timezone.utc).date():
                problems.append("businessDate is in the future")
            if timestamp is not None and business_date > timestamp.date():
                problems.append("businessDate is after the jobStatusTimestamp date")

        if problems:
            raise PropsError(
                "; ".join(problems), dto, provenance=Provenance("JobStatus", "from_dto")
            )

        # all three are set when no problems were recorded
        assert code is not None and timestamp is not None and business_date is not None
        return cls(
            application_id=application_id,
            job_id=job_id,
            job_status_code=code,
            job_status_timestamp=timestamp,
            business_date=business_date,
            run_id=run_id,
            host_id=host_id,
        )

    def to_dto(self) -> JobStatusDto:
        """Return the transfer counterpart of this record."""
        return JobStatusDto(
            application_id=self.application_id,
            job_id=self.job_id,
            job_status_code=self.job_status_code.value,
            job_status_timestamp=self.job_status_timestamp,
            business_date=self.business_date,
            run_id=self.run_id,
            host_id=self.host_id,
        )


def _required_text(name: str, value: Any, max_length: int, problems: list[str]) -> str:
    if not isinstance(value, str) or not value.strip():
        problems.append(f"{name} must be a non-empty string")
        return ""
    if len(value) > max_length:
        problems.append(f"{name} must be at most {max_length} characters")
    return value


def _optional_text(
    name: str, value: Any, max_length: int, problems: list[str]
) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        problems.append(f"{name} must be a string")
        return None
    if len(value) > max_length:
        problems.append(f"{name} must be at most {max_length} characters")
    return value
