"""Sync upsert orchestrator over a `StatementExecutorPort`."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

from .contracts import StatementExecutorPort
from .errors import DEFAULT_DUPLICATE_KEY_MARKERS
from .types import BindParams, UpsertCallback
from .upsert_state import StatementCall, UpsertMachine
from .upsert_types import ExecuteOptions, UpsertOutcome, UpsertStatements

SqlsInput = Union[UpsertStatements, Mapping[str, str]]
OptionsInput = Union[ExecuteOptions, Mapping[str, Any], UpsertCallback, None]


def resolve_duplicate_key_markers(
    executor: Any, markers: Optional[Sequence[str]] = None
) -> tuple[str, ...]:
    """Pick explicit markers, else the executor dialect's, else the default."""

    if markers is not None:
        return tuple(markers)
    dialect = getattr(executor, "dialect", None)
    dialect_markers = getattr(dialect, "duplicate_key_markers", None)
    if dialect_markers:
        return tuple(dialect_markers)
    return DEFAULT_DUPLICATE_KEY_MARKERS


def split_callback(
    options: OptionsInput, callback: Optional[UpsertCallback]
) -> tuple[ExecuteOptions | Mapping[str, Any] | None, Optional[UpsertCallback]]:
    """Treat a callable `options` argument as the callback when none is given."""

    if callback is None and callable(options) and not isinstance(options, Mapping):
        return None, options
    return options, callback


class Upserter:
    """Insert-or-update orchestrator bound to one statement executor."""

    def __init__(
        self,
        executor: StatementExecutorPort,
        *,
        duplicate_key_markers: Optional[Sequence[str]] = None,
    ):
        """Create upserter.

        Args:
            executor: Object exposing `query`, `insert` and `update`.
            duplicate_key_markers: Error message fragments that identify a
                unique key violation. Defaults to the executor dialect's
                markers, falling back to Oracle's `ORA-00001`.
        """

        self.executor = executor
        self.duplicate_key_markers = resolve_duplicate_key_markers(
            executor, duplicate_key_markers
        )

    def run(
        self,
        sqls: SqlsInput,
        bind_params: BindParams | None,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
    ) -> UpsertOutcome:
        """Run the upsert protocol and return its outcome without raising."""

        machine = UpsertMachine(
            sqls,
            bind_params,
            options,
            duplicate_key_markers=self.duplicate_key_markers,
        )
        step = machine.start()
        while isinstance(step, StatementCall):
            method = getattr(self.executor, step.kind.value)
            try:
                result = method(step.sql, step.params, step.options)
            except Exception as exc:
                step = machine.on_error(exc)
            else:
                step = machine.on_success(result)
        return step

    def upsert(
        self,
        sqls: SqlsInput,
        bind_params: BindParams | None,
        options: OptionsInput = None,
        callback: Optional[UpsertCallback] = None,
    ) -> Any:
        """Insert the row, or update it when it already exists.

        Runs `sqls.query` to probe for the row, then `sqls.insert` when it is
        missing, then `sqls.update` when the row exists, the insert hit a
        duplicate key, or the insert affected nothing.

        With `callback`, calls `callback(error, result)` once and returns
        `None`. Otherwise returns the write result or raises the error.
        """

        options, callback = split_callback(options, callback)
        outcome = self.run(sqls, bind_params, options)
        if callback is None:
            return outcome.unwrap()
        callback(outcome.error, outcome.result)
        return None


def upsert(
    executor: StatementExecutorPort,
    sqls: SqlsInput,
    bind_params: BindParams | None,
    options: OptionsInput = None,
    callback: Optional[UpsertCallback] = None,
    *,
    duplicate_key_markers: Optional[Sequence[str]] = None,
) -> Any:
    """Functional form of `Upserter.upsert`."""

    upserter = Upserter(executor, duplicate_key_markers=duplicate_key_markers)
    return upserter.upsert(sqls, bind_params, options, callback)
