"""LOB placeholder binding for write statements.

Write statements may reference a LOB column through an `EMPTY_CLOB()` or
`EMPTY_BLOB()` call instead of a bind token, e.g.::

    INSERT INTO T (ID, LOB_DATA) VALUES (:id, EMPTY_CLOB())
    UPDATE T SET LOB_DATA = EMPTY_CLOB() WHERE ID = :id

With `lob_meta_info={"LOB_DATA": "lobData"}` and a `lobData` param, the
placeholder call is replaced with `:lobData` so the value is written by
the same statement.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from .dialects import named_tokens

_EMPTY_LOB = r"EMPTY_[BC]LOB\s*\(\s*\)"
_EMPTY_LOB_RE = re.compile(rf"^{_EMPTY_LOB}$", re.IGNORECASE)
_INSERT_COLUMNS_RE = re.compile(r"\(([^()]*)\)\s*VALUES\s*\(", re.IGNORECASE)


def _unquote(ident: str) -> str:
    return ident.strip().strip('"`[]').upper()


def _value_spans(sql: str, pos: int) -> list[tuple[int, int]]:
    """Split a `VALUES (...)` list starting at `pos` into item spans."""

    spans: list[tuple[int, int]] = []
    depth = 0
    quote: Optional[str] = None
    start = pos
    for i in range(pos, len(sql)):
        ch = sql[i]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                spans.append((start, i))
                return spans
            depth -= 1
        elif ch == "," and depth == 0:
            spans.append((start, i))
            start = i + 1
    return spans


def _rewrite_update(sql: str, column: str, bind_name: str) -> str:
    pattern = re.compile(
        rf"(?<![\w.])([\"`]?{re.escape(column)}[\"`]?\s*=\s*){_EMPTY_LOB}",
        re.IGNORECASE,
    )
    return pattern.sub(lambda m: f"{m.group(1)}:{bind_name}", sql, count=1)


def _rewrite_insert(sql: str, column: str, bind_name: str) -> str:
    match = _INSERT_COLUMNS_RE.search(sql)
    if match is None:
        return sql
    columns = [_unquote(name) for name in match.group(1).split(",")]
    try:
        index = columns.index(_unquote(column))
    except ValueError:
        return sql

    spans = _value_spans(sql, match.end())
    if index >= len(spans):
        return sql
    start, end = spans[index]
    value = sql[start:end]
    if not _EMPTY_LOB_RE.match(value.strip()):
        return sql
    lead = len(value) - len(value.lstrip())
    trail = len(value) - len(value.rstrip())
    return f"{sql[:start + lead]}:{bind_name}{sql[end - trail:]}"


def bind_lob_placeholders(
    sql: str,
    lob_meta_info: Optional[Mapping[str, str]],
    params: Optional[Mapping[str, Any]],
) -> str:
    """Replace `EMPTY_*LOB()` calls of mapped LOB columns with bind tokens.

    Columns whose bind param is missing from `params`, or already referenced
    as a `:name` token, are left untouched.
    """

    if not lob_meta_info or not params:
        return sql

    for column, bind_name in lob_meta_info.items():
        if bind_name not in params or bind_name in named_tokens(sql):
            continue
        rewritten = _rewrite_update(sql, column, bind_name)
        if rewritten == sql:
            rewritten = _rewrite_insert(sql, column, bind_name)
        sql = rewritten
    return sql
