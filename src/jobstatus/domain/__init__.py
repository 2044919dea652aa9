"""JOBSTATUS domain layer."""

from .job_status import JobStatus, JobStatusCode, JobStatusDto

__all__ = ["JobStatus", "JobStatusCode", "JobStatusDto"]
