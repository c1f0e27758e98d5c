"""Core port contracts used by adapters and the upsert orchestrator."""

from __future__ import annotations

from typing import Optional, Protocol

from .types import QueryParams, Rows
from .upsert_types import ExecuteOptions, WriteResult


class StatementExecutorPort(Protocol):
    """Statement executor capability consumed by `Upserter`.

    `query` returns the matched rows; `insert` and `update` return a result
    exposing `rows_affected`. Failures are raised as exceptions.
    """

    def query(
        self,
        sql: str,
        params: QueryParams = None,
        options: Optional[ExecuteOptions] = None,
    ) -> Rows: ...

    def insert(
        self,
        sql: str,
        params: QueryParams = None,
        options: Optional[ExecuteOptions] = None,
    ) -> WriteResult: ...

    def update(
        self,
        sql: str,
        params: QueryParams = None,
        options: Optional[ExecuteOptions] = None,
    ) -> WriteResult: ...


class AsyncStatementExecutorPort(Protocol):
    """Async statement executor capability consumed by `AsyncUpserter`."""

    async def query(
        self,
        sql: str,
        params: QueryParams = None,
        options: Optional[ExecuteOptions] = None,
    ) -> Rows: ...

    async def insert(
        self,
        sql: str,
        params: QueryParams = None,
        options: Optional[ExecuteOptions] = None,
    ) -> WriteResult: ...

    async def update(
        self,
        sql: str,
        params: QueryParams = None,
        options: Optional[ExecuteOptions] = None,
    ) -> WriteResult: ...
