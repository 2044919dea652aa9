"""JOBSTATUS test suite.

Tiers (markers are added by each tier's ``conftest.py``):
- unit/        : mapper, predicates, classifier, domain, config, logging.
- contract/    : one JobStatusRepo suite run against every backend.
- integration/ : SQLAlchemy adapter behavior against real SQLite/PostgreSQL.
- functional/  : the ``jobstatus`` CLI driven through CliRunner.
- fixtures/    : pytest plugins (SQLite, PostgreSQL via Testcontainers, data).
- helpers/     : shared utilities (no tests here).

PostgreSQL tests are skipped when no Docker daemon is reachable.
"""
