"""DB-API adapter and dialect exports."""

from .async_database import AsyncDatabase
from .database import Database
from .dialects import Dialect, MySQLDialect, OracleDialect, PostgresDialect, SQLiteDialect
from .lob import bind_lob_placeholders
from .result_set import AsyncResultSet, ResultSet

__all__ = [
    "AsyncDatabase",
    "AsyncResultSet",
    "Database",
    "Dialect",
    "MySQLDialect",
    "OracleDialect",
    "PostgresDialect",
    "ResultSet",
    "SQLiteDialect",
    "bind_lob_placeholders",
]
