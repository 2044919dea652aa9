"""Adapters implementing JOBSTATUS interfaces."""
