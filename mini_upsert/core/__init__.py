"""Public core API for the upsert orchestrator."""

from .bind_params import filter_bind_params
from .contracts import AsyncStatementExecutorPort, StatementExecutorPort
from .errors import (
    InvalidBindParamsError,
    NoRowsUpdatedError,
    UpsertError,
    is_duplicate_key_error,
)
from .upsert import Upserter, upsert
from .upsert_async import AsyncUpserter, upsert_async
from .upsert_state import StatementCall, StatementKind, UpsertMachine, UpsertState
from .upsert_types import ExecuteOptions, UpsertOutcome, UpsertStatements, WriteResult

__all__ = [
    "AsyncStatementExecutorPort",
    "AsyncUpserter",
    "ExecuteOptions",
    "InvalidBindParamsError",
    "NoRowsUpdatedError",
    "StatementCall",
    "StatementExecutorPort",
    "StatementKind",
    "UpsertError",
    "UpsertMachine",
    "UpsertOutcome",
    "UpsertState",
    "UpsertStatements",
    "Upserter",
    "WriteResult",
    "filter_bind_params",
    "is_duplicate_key_error",
    "upsert",
    "upsert_async",
]
