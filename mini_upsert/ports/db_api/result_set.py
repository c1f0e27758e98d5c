"""Cursor-backed result sets returned by `query(..., result_set=True)`."""

from __future__ import annotations

from typing import Any, AsyncIterator, Callable, Iterator, Optional

from ...core._async_utils import _maybe_await
from ...core.types import RowMapping, Rows

RowMapper = Callable[[Any, Any], RowMapping]


class ResultSet:
    """Lazily fetches rows from an open DB-API cursor."""

    def __init__(self, cursor: Any, row_mapper: RowMapper, max_rows: Optional[int] = None):
        self._cursor = cursor
        self._map = row_mapper
        self._remaining = max_rows
        self.closed = False

    def _budget(self, count: int) -> int:
        if self._remaining is None:
            return count
        return min(count, self._remaining)

    def fetch(self, count: int = 100) -> Rows:
        """Return up to `count` more rows; an empty list means exhausted."""

        if self.closed:
            raise RuntimeError("result set is closed")
        count = self._budget(count)
        if count <= 0:
            return []
        rows = self._cursor.fetchmany(count)
        if self._remaining is not None:
            self._remaining -= len(rows)
        return [self._map(self._cursor, row) for row in rows]

    def __iter__(self) -> Iterator[RowMapping]:
        while True:
            rows = self.fetch()
            if not rows:
                return
            yield from rows

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close = getattr(self._cursor, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> ResultSet:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()


class AsyncResultSet:
    """Async counterpart of `ResultSet` for async or sync cursors."""

    def __init__(self, cursor: Any, row_mapper: RowMapper, max_rows: Optional[int] = None):
        self._cursor = cursor
        self._map = row_mapper
        self._remaining = max_rows
        self.closed = False

    async def fetch(self, count: int = 100) -> Rows:
        """Return up to `count` more rows; an empty list means exhausted."""

        if self.closed:
            raise RuntimeError("result set is closed")
        if self._remaining is not None:
            count = min(count, self._remaining)
        if count <= 0:
            return []
        rows = await _maybe_await(self._cursor.fetchmany(count))
        if self._remaining is not None:
            self._remaining -= len(rows)
        return [self._map(self._cursor, row) for row in rows]

    async def __aiter__(self) -> AsyncIterator[RowMapping]:
        while True:
            rows = await self.fetch()
            if not rows:
                return
            for row in rows:
                yield row

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        close = getattr(self._cursor, "close", None)
        if callable(close):
            await _maybe_await(close())

    async def __aenter__(self) -> AsyncResultSet:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()
