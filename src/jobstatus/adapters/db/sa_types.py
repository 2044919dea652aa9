"""Column types shared by the SQLAlchemy adapters."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy.types import DateTime, TypeDecorator

if TYPE_CHECKING:
    from sqlalchemy.engine.interfaces import Dialect

__all__ = ["UTCDateTime"]


def _as_utc(value: datetime) -> datetime:
    # naive values are UTC wall time
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class UTCDateTime(TypeDecorator[datetime]):  # pylint: disable=too-many-ancestors
    """A ``DateTime(timezone=True)`` that always round-trips aware UTC.

    PostgreSQL stores ``timestamptz`` natively. SQLite has no zone support, so
    the UTC wall time is written without tzinfo and tagged UTC when read back.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    @property
    def python_type(self) -> type[datetime]:
        return datetime

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> Any:
        if value is None:
            return None
        utc = _as_utc(value)
        if dialect.name == "sqlite":
            return utc.replace(tzinfo=None)
        return utc

    process_literal_param = process_bind_param

    def process_result_value(self, value: Any, dialect: Dialect) -> Any:
        # non-datetimes pass through; the mapper rejects them as scan errors
        return _as_utc(value) if isinstance(value, datetime) else value
