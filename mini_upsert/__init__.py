"""mini_upsert: insert-or-update over plain query/insert/update executors."""

from .core import (
    AsyncStatementExecutorPort,
    AsyncUpserter,
    ExecuteOptions,
    InvalidBindParamsError,
    NoRowsUpdatedError,
    StatementExecutorPort,
    UpsertError,
    UpsertOutcome,
    UpsertStatements,
    Upserter,
    WriteResult,
    filter_bind_params,
    is_duplicate_key_error,
    upsert,
    upsert_async,
)
from .ports import (
    AsyncDatabase,
    Database,
    Dialect,
    MySQLDialect,
    OracleDialect,
    PostgresDialect,
    SQLiteDialect,
)

__all__ = [
    "Upserter",
    "AsyncUpserter",
    "upsert",
    "upsert_async",
    "filter_bind_params",
    "is_duplicate_key_error",
    "UpsertStatements",
    "ExecuteOptions",
    "WriteResult",
    "UpsertOutcome",
    "UpsertError",
    "InvalidBindParamsError",
    "NoRowsUpdatedError",
    "StatementExecutorPort",
    "AsyncStatementExecutorPort",
    "Database",
    "AsyncDatabase",
    "Dialect",
    "SQLiteDialect",
    "PostgresDialect",
    "MySQLDialect",
    "OracleDialect",
]
