"""Async DB adapter implementing the core async statement executor port."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Mapping

from ...core._async_utils import _maybe_await
from ...core.types import QueryParams, RowMapping, Rows
from ...core.upsert_types import ExecuteOptions, WriteResult
from .database import SAVEPOINT_NAME, _rowcount
from .dialects import Dialect
from .lob import bind_lob_placeholders
from .result_set import AsyncResultSet

logger = logging.getLogger(__name__)


class AsyncDatabase:
    """Async database wrapper exposing awaitable `query`, `insert` and `update`."""

    def __init__(self, conn: Any, dialect: Dialect):
        """Create async database adapter.

        Args:
            conn: Async (or sync) DB connection object.
            dialect: Concrete SQL dialect instance.
        """

        self._closed = False
        self.conn = conn
        self.dialect = dialect

    def _uses_savepoint(self) -> bool:
        if not getattr(self.dialect, "aborts_transaction_on_error", False):
            return False
        return not bool(getattr(self.conn, "autocommit", False))

    async def _savepoint(self, statement: str) -> None:
        await self._close_cursor(await self.execute(f"{statement} {SAVEPOINT_NAME}"))

    async def commit(self) -> None:
        await _maybe_await(self.conn.commit())

    async def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute `:name` SQL with optional named parameters and return cursor."""

        if self._closed:
            raise RuntimeError("connection is closed")
        sql, bound = self.dialect.compile(sql, params)
        cur = await _maybe_await(self.conn.cursor())
        try:
            if bound is None:
                await _maybe_await(cur.execute(sql))
            else:
                await _maybe_await(cur.execute(sql, bound))
        except BaseException:
            await self._close_cursor(cur)
            raise
        return cur

    async def _close_cursor(self, cur: Any) -> None:
        close = getattr(cur, "close", None)
        if callable(close):
            await _maybe_await(close())

    def _row_to_mapping(self, cursor: Any, row: Any) -> RowMapping:
        """Normalize row object to mapping.

        Supports mapping rows directly and tuple/list rows via
        `cursor.description`.
        """

        if isinstance(row, Mapping):
            return row

        if isinstance(row, (tuple, list)):
            desc = getattr(cursor, "description", None)
            if not desc:
                raise TypeError(
                    "Cursor has no description; cannot map tuple rows to dict."
                )
            cols = [d[0] for d in desc]
            return dict(zip(cols, row, strict=True))

        try:
            return dict(row)
        except (TypeError, ValueError):
            pass

        raise TypeError(f"Unsupported row type: {type(row)}")

    async def query(
        self,
        sql: str,
        params: QueryParams = None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> Rows | AsyncResultSet:
        """Run a SELECT and return its rows (see `Database.query`)."""

        opts = ExecuteOptions.coerce(options)
        cur = await self.execute(sql, params)
        if opts.result_set:
            return AsyncResultSet(cur, self._row_to_mapping, opts.max_rows)

        try:
            if opts.max_rows:
                rows = await _maybe_await(cur.fetchmany(opts.max_rows))
            else:
                rows = await _maybe_await(cur.fetchall())
            return [self._row_to_mapping(cur, r) for r in rows]
        finally:
            await self._close_cursor(cur)

    async def _write(
        self,
        sql: str,
        params: QueryParams,
        options: ExecuteOptions | Mapping[str, Any] | None,
    ) -> WriteResult:
        opts = ExecuteOptions.coerce(options)
        sql = bind_lob_placeholders(sql, opts.lob_meta_info, params)
        savepoint = self._uses_savepoint()
        if savepoint:
            await self._savepoint("SAVEPOINT")
        try:
            cur = await self.execute(sql, params)
        except Exception:
            if savepoint:
                await self._savepoint("ROLLBACK TO SAVEPOINT")
            raise
        try:
            result = WriteResult(
                rows_affected=_rowcount(cur),
                lastrowid=self.dialect.get_lastrowid(cur),
            )
        finally:
            await self._close_cursor(cur)
        if savepoint:
            await self._savepoint("RELEASE SAVEPOINT")
        if opts.auto_commit:
            await self.commit()
        logger.debug("write affected %d row(s)", result.rows_affected)
        return result

    async def insert(
        self,
        sql: str,
        params: QueryParams = None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> WriteResult:
        """Run an INSERT, committing afterwards when `auto_commit` is set."""

        return await self._write(sql, params, options)

    async def update(
        self,
        sql: str,
        params: QueryParams = None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> WriteResult:
        """Run an UPDATE, committing afterwards when `auto_commit` is set."""

        return await self._write(sql, params, options)

    def close(self) -> None:
        """Close the underlying connection when its `close()` is synchronous."""

        if self._closed:
            return
        self._closed = True
        close = getattr(self.conn, "close", None)
        if callable(close):
            close_method = getattr(type(self.conn), "close", None)
            if inspect.iscoroutinefunction(close_method):
                return
            close()

    async def aclose(self) -> None:
        """Async close of the underlying connection."""

        if self._closed:
            return
        self._closed = True
        close = getattr(self.conn, "close", None)
        if callable(close):
            await _maybe_await(close())

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()
