"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from ...core.types import QueryParams

# Quoted literals and `::` casts are matched first so their contents are
# never taken for bind tokens.
_NAMED_TOKEN_RE = re.compile(
    r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|::|:([A-Za-z_][A-Za-z0-9_]*)"
)


def named_tokens(sql: str) -> list[str]:
    """Return `:name` bind tokens of `sql` in order of appearance."""

    return [m.group(1) for m in _NAMED_TOKEN_RE.finditer(sql) if m.group(1)]


class Dialect:
    """Base dialect that defines bind style and duplicate-key detection."""

    name: str = "generic"
    paramstyle: str = "named"
    duplicate_key_markers: tuple[str, ...] = ("ORA-00001",)
    # Set when a failed statement aborts the enclosing transaction, so writes
    # run inside a savepoint.
    aborts_transaction_on_error: bool = False

    def placeholder(self, key: str) -> str:
        """Return parameter placeholder for current param style."""

        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "pyformat":
            return f"%({key})s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def compile(self, sql: str, params: QueryParams = None) -> tuple[str, Any]:
        """Translate `:name` SQL and named params to the driver's bind style.

        Only params referenced by the SQL are passed to the driver.
        """

        if params is not None and not isinstance(params, Mapping):
            raise TypeError("Only named bind params are supported.")

        if self.paramstyle == "named":
            if params is None:
                return sql, None
            referenced = set(named_tokens(sql))
            return sql, {k: v for k, v in params.items() if k in referenced}

        if self.paramstyle != "pyformat":
            raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

        if not named_tokens(sql):
            return sql, None

        params = params or {}
        used: dict[str, Any] = {}
        parts: list[str] = []
        last = 0
        for match in _NAMED_TOKEN_RE.finditer(sql):
            parts.append(sql[last:match.start()].replace("%", "%%"))
            token = match.group(1)
            if token is None:
                parts.append(match.group(0).replace("%", "%%"))
            else:
                if token not in params:
                    raise KeyError(f"Missing bind param: {token}")
                used[token] = params[token]
                parts.append(self.placeholder(token))
            last = match.end()
        parts.append(sql[last:].replace("%", "%%"))
        return "".join(parts), used

    def get_lastrowid(self, cursor: Any) -> Optional[int]:
        """Extract `lastrowid` from DB-API cursor when available."""

        return getattr(cursor, "lastrowid", None)


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` parameters)."""

    name = "sqlite"
    paramstyle = "named"
    duplicate_key_markers = ("UNIQUE constraint failed", "PRIMARY KEY must be unique")


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%(name)s` parameters)."""

    name = "postgres"
    paramstyle = "pyformat"
    duplicate_key_markers = ("duplicate key value violates unique constraint",)
    aborts_transaction_on_error = True


class MySQLDialect(Dialect):
    """MySQL dialect (`%(name)s` parameters)."""

    name = "mysql"
    paramstyle = "pyformat"
    duplicate_key_markers = ("Duplicate entry",)


class OracleDialect(Dialect):
    """Oracle dialect (`:name` parameters, `ORA-00001` unique violations)."""

    name = "oracle"
    paramstyle = "named"
    duplicate_key_markers = ("ORA-00001",)

    def get_lastrowid(self, cursor: Any) -> Optional[int]:
        # python-oracledb exposes a ROWID string, not an integer id.
        return None
