"""Global pytest fixtures for JOBSTATUS."""

from __future__ import annotations

import pytest

pytest_plugins = [
    "tests.fixtures.sqlite",
    "tests.fixtures.postgres",
    "tests.fixtures.datagen",
]


# Helper to route to an existing URL fixture by name
@pytest.fixture
def db_url(request: pytest.FixtureRequest) -> str:
    """Indirection fixture to parametrize over URL-providing fixtures.

    Example:
        ```py
        @pytest.mark.parametrize("db_url", ["pg_url", "sqlite_url_file"], indirect=True)
        def test_something(db_url): ...
        ```
    """
    return request.getfixturevalue(request.param)


@pytest.fixture(autouse=True)
def _clean_jobstatus_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables from leaking into tests."""
    for name in ("JOBSTATUS_DB_URL", "JOBSTATUS_QUERY_ANCHORS", "JOBSTATUS_LOG_PATH"):
        monkeypatch.delenv(name, raising=False)
