"""Per-statement bind parameter selection."""

from __future__ import annotations

from typing import Any, Mapping

from .types import BindParams, NamedParams
from .upsert_types import ExecuteOptions


def lob_bind_names(options: ExecuteOptions | Mapping[str, Any] | None) -> set[str]:
    """Return bind names registered against LOB columns in `options`."""

    if options is None:
        return set()
    if isinstance(options, ExecuteOptions):
        lob_meta_info = options.lob_meta_info
    else:
        lob_meta_info = options.get("lob_meta_info", options.get("lobMetaInfo"))
    if not lob_meta_info:
        return set()
    return {str(name) for name in lob_meta_info.values()}


def filter_bind_params(
    sql: str | None,
    bind_params: BindParams | None,
    options: ExecuteOptions | Mapping[str, Any] | None = None,
) -> NamedParams:
    """Return only the bind params a statement needs.

    A param is kept when the literal `:<name>` token occurs in `sql`, or when
    its name is registered as a LOB bind in `options.lob_meta_info`. LOB
    values may be referenced through an `EMPTY_CLOB()`/`EMPTY_BLOB()` call
    rather than a named token, so they are always forwarded.

    The input mapping is never modified.
    """

    if not bind_params:
        return {}

    sql = sql or ""
    always = lob_bind_names(options)
    return {
        name: value
        for name, value in bind_params.items()
        if f":{name}" in sql or name in always
    }
