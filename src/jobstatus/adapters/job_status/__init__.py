"""Job status persistence adapters.

`SqlAlchemyJobStatusRepo` targets PostgreSQL and SQLite; `InMemoryJobStatusRepo`
keeps rows in process. Both share the mapper, predicate builder and error
classifier defined alongside them.
"""

from .in_memory_repo import InMemoryJobStatusRepo
from .sqlalchemy_repo import SqlAlchemyJobStatusRepo

__all__ = ["InMemoryJobStatusRepo", "SqlAlchemyJobStatusRepo"]
