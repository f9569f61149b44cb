"""Database layer — connection, schema, migrations, and user-state stores."""

from fst_fantasy.db.connection import connect, get_connection
from fst_fantasy.db.memory import InMemoryUserStateStore
from fst_fantasy.db.migrations import apply_migrations, get_schema_version
from fst_fantasy.db.repositories import SqliteUserStateStore, UserStateStore
from fst_fantasy.db.schema import SCHEMA_SQL, init_schema

__all__ = [
    "connect",
    "get_connection",
    "apply_migrations",
    "get_schema_version",
    "init_schema",
    "SCHEMA_SQL",
    "UserStateStore",
    "SqliteUserStateStore",
    "InMemoryUserStateStore",
]
