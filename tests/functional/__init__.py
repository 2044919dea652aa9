"""Functional tests: the ``jobstatus`` CLI as a user runs it."""
