"""Integration tests against real databases.

SQLite files live under each test's ``tmp_path``; PostgreSQL runs in a
Testcontainers ``postgres:17`` instance shared by the session.
"""
