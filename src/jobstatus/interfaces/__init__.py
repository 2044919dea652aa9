"""JOBSTATUS interfaces (ports)."""

from .job_status_repo import JobStatusRepo

__all__ = ["JobStatusRepo"]
