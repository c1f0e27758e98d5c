"""Value objects passed between callers, the upsert orchestrator, and executors."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, Optional

from .types import LobMetaInfo

_STATEMENT_KEYS = ("query", "insert", "update")

_OPTION_ALIASES = {
    "maxRows": "max_rows",
    "resultSet": "result_set",
    "autoCommit": "auto_commit",
    "lobMetaInfo": "lob_meta_info",
}


@dataclass(frozen=True)
class UpsertStatements:
    """The three caller-supplied statements of one upsert call."""

    query: str = ""
    insert: str = ""
    update: str = ""

    @classmethod
    def coerce(cls, value: UpsertStatements | Mapping[str, str] | None) -> UpsertStatements:
        """Build statements from an instance or a `query/insert/update` mapping.

        Raises `TypeError` naming the first missing or empty statement.
        """

        if isinstance(value, cls):
            statements = value
        elif isinstance(value, Mapping):
            statements = cls(**{key: value.get(key) or "" for key in _STATEMENT_KEYS})
        else:
            raise TypeError(
                "sqls must be UpsertStatements or a mapping with query/insert/update keys."
            )
        for key in _STATEMENT_KEYS:
            if not getattr(statements, key):
                raise TypeError(f"sqls is missing the {key!r} statement.")
        return statements


@dataclass
class ExecuteOptions:
    """Execution options shared by the probe, insert, and update statements.

    `lob_meta_info` maps a LOB column name to the bind parameter that carries
    its value. Unrecognized keys given through `coerce()` are kept in `extra`
    for executors that understand them.
    """

    max_rows: Optional[int] = None
    result_set: bool = False
    auto_commit: Optional[bool] = None
    lob_meta_info: Optional[LobMetaInfo] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def coerce(cls, value: ExecuteOptions | Mapping[str, Any] | None) -> ExecuteOptions:
        """Return a new options object built from `value`.

        Accepts `None`, an existing instance (copied), or a mapping using
        snake_case names or the camelCase aliases `maxRows`, `resultSet`,
        `autoCommit` and `lobMetaInfo`.
        """

        if value is None:
            return cls()
        if isinstance(value, cls):
            return replace(value, extra=dict(value.extra))
        if not isinstance(value, Mapping):
            raise TypeError(f"Unsupported options type: {type(value)}")

        known = {f.name for f in fields(cls)} - {"extra"}
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, item in value.items():
            name = _OPTION_ALIASES.get(key, key)
            if name in known:
                kwargs[name] = item
            else:
                extra[key] = item
        return cls(**kwargs, extra=extra)

    def for_probe(self) -> ExecuteOptions:
        """Copy used by the existence probe: at most one row, plain row list."""

        return replace(self, max_rows=1, result_set=False, extra=dict(self.extra))


@dataclass
class WriteResult:
    """Result of an executor `insert` or `update` call."""

    rows_affected: int = 0
    lastrowid: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpsertOutcome:
    """Either the committing write result or the one error of an upsert."""

    result: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the result or raise the recorded error."""

        if self.error is not None:
            raise self.error
        return self.result


def rows_affected(result: Any) -> int:
    """Read the affected-row count from an executor write result.

    Supports `WriteResult`-like objects and mappings carrying either
    `rows_affected` or `rowsAffected`. Missing counts read as zero.
    """

    if result is None:
        return 0
    if isinstance(result, Mapping):
        count = result.get("rows_affected", result.get("rowsAffected"))
    else:
        count = getattr(result, "rows_affected", None)
    if not count or count < 0:
        return 0
    return int(count)
