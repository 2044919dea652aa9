"""Contract tests.

Each module defines the JobStatusRepo behavior once and parametrizes a fixture
over the in-memory, SQLite and PostgreSQL backends.
"""
