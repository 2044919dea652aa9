"""Engine construction for the job status store.

Two backends are supported, identified by `Backend`:

| Backend    | Used for                | Engine tuning                                  |
|------------|-------------------------|------------------------------------------------|
| PostgreSQL | production              | ``pool_pre_ping`` to replace dropped sockets   |
| SQLite     | development and tests   | PRAGMAs run on every new DBAPI connection      |

Anything else is refused with `UnsupportedBackend` before a connection is
attempted. One engine is shared by all threads of a repository.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, make_url

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

__all__ = ["Backend", "UnsupportedBackend", "is_sqlite", "make_engine"]

#: Run, in order, on each SQLite connection the pool opens.
SQLITE_PRAGMAS: tuple[str, ...] = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA temp_store=MEMORY",
)


class UnsupportedBackend(Exception):
    """The URL or engine names a database this package cannot talk to."""


class Backend(str, Enum):
    """Database backends, valued by their SQLAlchemy dialect name."""

    POSTGRES = "postgresql"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, name: str | None) -> Backend:
        """Map ``postgresql+psycopg``, ``pg``, ``SQLite`` ... to a member.

        Raises:
            UnsupportedBackend: for any other name.
        """
        dialect, _, _driver = (name or "").strip().lower().partition("+")
        aliases = {"postgresql": cls.POSTGRES, "postgres": cls.POSTGRES, "pg": cls.POSTGRES}
        if dialect in aliases:
            return aliases[dialect]
        if dialect == cls.SQLITE.value:
            return cls.SQLITE
        raise UnsupportedBackend(f"Unsupported database backend: {name!r}")

    @classmethod
    def of(cls, bind: Engine | Connection | URL | str) -> Backend:
        """Backend of an engine, a connection, or a URL."""
        if isinstance(bind, (str, URL)):
            return cls.parse(make_url(bind).get_backend_name())
        dialect = getattr(bind, "dialect", None)
        if dialect is None:
            raise UnsupportedBackend(f"{type(bind).__name__} has no SQLAlchemy dialect")
        return cls.parse(dialect.name)


def is_sqlite(url: str | URL) -> bool:
    """True when ``url`` names a SQLite database."""
    return make_url(url).get_backend_name() == Backend.SQLITE.value


def _apply_sqlite_pragmas(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    try:
        for pragma in SQLITE_PRAGMAS:
            cursor.execute(pragma)
    finally:
        cursor.close()


def make_engine(url: str | URL, *, echo: bool = False) -> Engine:
    """Build a configured engine for ``url``.

    No connection is made here; network and file errors surface on first use.

    Raises:
        sqlalchemy.exc.ArgumentError: ``url`` cannot be parsed.
        sqlalchemy.exc.NoSuchModuleError: the dialect or driver is not installed.
    """
    sqlite = is_sqlite(url)
    kwargs: dict[str, Any] = {"echo": echo}
    if not sqlite:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)
    if sqlite:
        event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine
