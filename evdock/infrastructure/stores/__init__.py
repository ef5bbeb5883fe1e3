"""Key-value store implementations."""

from .sql_store import SqlKeyValueStore

__all__ = [
    "SqlKeyValueStore",
]
