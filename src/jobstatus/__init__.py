"""JOBSTATUS

Persistence and query service for job-status events: an application's job
reaching a status at a point in time, tagged with a business date, run id and
host id.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
