"""JOBSTATUS command-line interface."""

from .main import jobstatus

__all__ = ["jobstatus"]
