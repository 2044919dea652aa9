"""JOBSTATUS entrypoints."""
