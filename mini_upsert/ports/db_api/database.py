"""DB-API adapter implementing the core statement executor port."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from ...core.types import QueryParams, RowMapping, Rows
from ...core.upsert_types import ExecuteOptions, WriteResult
from .dialects import Dialect
from .lob import bind_lob_placeholders
from .result_set import ResultSet

logger = logging.getLogger(__name__)

SAVEPOINT_NAME = "mini_upsert_write"


def _rowcount(cursor: Any) -> int:
    count = getattr(cursor, "rowcount", None)
    if count is None or count < 0:
        return 0
    return count


class Database:
    """Thin DB-API wrapper exposing `query`, `insert` and `update`.

    SQL is always written with `:name` bind tokens; the dialect translates
    them to the driver's paramstyle.
    """

    def __init__(self, conn: Any, dialect: Dialect):
        """Create database adapter.

        Args:
            conn: DB-API connection object.
            dialect: Concrete SQL dialect instance.
        """

        self._closed = False
        self.conn: Any | None = conn
        self.dialect = dialect

    def _require_open_connection(self) -> Any:
        if self._closed or self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn

    def _uses_savepoint(self) -> bool:
        if not getattr(self.dialect, "aborts_transaction_on_error", False):
            return False
        conn = self._require_open_connection()
        return not bool(getattr(conn, "autocommit", False))

    def _savepoint(self, statement: str) -> None:
        self._close_cursor(self.execute(f"{statement} {SAVEPOINT_NAME}"))

    def commit(self) -> None:
        self._require_open_connection().commit()

    def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute `:name` SQL with optional named parameters and return cursor."""

        conn = self._require_open_connection()
        sql, bound = self.dialect.compile(sql, params)
        cur = conn.cursor()
        try:
            if bound is None:
                cur.execute(sql)
            else:
                cur.execute(sql, bound)
        except BaseException:
            self._close_cursor(cur)
            raise
        return cur

    def _close_cursor(self, cur: Any) -> None:
        close = getattr(cur, "close", None)
        if callable(close):
            close()

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

    def query(
        self,
        sql: str,
        params: QueryParams = None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> Rows | ResultSet:
        """Run a SELECT and return its rows.

        `max_rows` caps the number of rows fetched. With `result_set=True`
        the open cursor is returned wrapped in a `ResultSet` instead.
        """

        opts = ExecuteOptions.coerce(options)
        cur = self.execute(sql, params)
        if opts.result_set:
            return ResultSet(cur, self._row_to_mapping, opts.max_rows)

        try:
            if opts.max_rows:
                rows = cur.fetchmany(opts.max_rows)
            else:
                rows = cur.fetchall()
            return [self._row_to_mapping(cur, r) for r in rows]
        finally:
            self._close_cursor(cur)

    def _write(
        self,
        sql: str,
        params: QueryParams,
        options: ExecuteOptions | Mapping[str, Any] | None,
    ) -> WriteResult:
        opts = ExecuteOptions.coerce(options)
        sql = bind_lob_placeholders(sql, opts.lob_meta_info, params)
        # Some servers abort the whole transaction on a failed statement; the
        # savepoint keeps it usable for the update after a duplicate key.
        savepoint = self._uses_savepoint()
        if savepoint:
            self._savepoint("SAVEPOINT")
        try:
            cur = self.execute(sql, params)
        except Exception:
            if savepoint:
                self._savepoint("ROLLBACK TO SAVEPOINT")
            raise
        try:
            result = WriteResult(
                rows_affected=_rowcount(cur),
                lastrowid=self.dialect.get_lastrowid(cur),
            )
        finally:
            self._close_cursor(cur)
        if savepoint:
            self._savepoint("RELEASE SAVEPOINT")
        if opts.auto_commit:
            self.commit()
        logger.debug("write affected %d row(s)", result.rows_affected)
        return result

    def insert(
        self,
        sql: str,
        params: QueryParams = None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> WriteResult:
        """Run an INSERT, committing afterwards when `auto_commit` is set."""

        return self._write(sql, params, options)

    def update(
        self,
        sql: str,
        params: QueryParams = None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> WriteResult:
        """Run an UPDATE, committing afterwards when `auto_commit` is set."""

        return self._write(sql, params, options)

    def close(self) -> None:
        """Close the underlying connection."""

        if self._closed:
            return
        conn = self.conn
        self._closed = True
        self.conn = None
        if conn is None:
            return
        close = getattr(conn, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
