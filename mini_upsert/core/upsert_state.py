"""I/O free state machine behind sync and async upsert.

The machine never talks to a database. It hands out `StatementCall` values
describing the next executor call and is fed the outcome of that call, until
it settles on a terminal `UpsertOutcome`:

    START -> PROBING -> RUN_INSERT -> DONE
                     |            -> RUN_UPDATE -> DONE | FAILED
                     |            -> FAILED
                     -> RUN_UPDATE
                     -> FAILED
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

from .bind_params import filter_bind_params
from .errors import (
    DEFAULT_DUPLICATE_KEY_MARKERS,
    InvalidBindParamsError,
    NoRowsUpdatedError,
    is_duplicate_key_error,
)
from .types import NamedParams
from .upsert_types import ExecuteOptions, UpsertOutcome, UpsertStatements, rows_affected

logger = logging.getLogger(__name__)


class UpsertState(str, Enum):
    """Named states of one upsert call."""

    START = "start"
    PROBING = "probing"
    RUN_INSERT = "run_insert"
    RUN_UPDATE = "run_update"
    DONE = "done"
    FAILED = "failed"


class StatementKind(str, Enum):
    """Executor operation a `StatementCall` must be dispatched to."""

    QUERY = "query"
    INSERT = "insert"
    UPDATE = "update"


@dataclass(frozen=True)
class StatementCall:
    """One executor call requested by the machine."""

    kind: StatementKind
    sql: str
    params: NamedParams
    options: ExecuteOptions


UpsertStep = Union[StatementCall, UpsertOutcome]

_TERMINAL = frozenset({UpsertState.DONE, UpsertState.FAILED})


class UpsertMachine:
    """Probe, insert, and update-on-conflict protocol for a single call."""

    def __init__(
        self,
        sqls: UpsertStatements | Mapping[str, str] | None,
        bind_params: Any,
        options: ExecuteOptions | Mapping[str, Any] | None = None,
        *,
        duplicate_key_markers: Sequence[str] = DEFAULT_DUPLICATE_KEY_MARKERS,
    ):
        self.state = UpsertState.START
        self.outcome: Optional[UpsertOutcome] = None
        self._sqls_input = sqls
        self._bind_params_input = bind_params
        self._options_input = options
        self._markers = tuple(duplicate_key_markers)
        self._sqls = UpsertStatements()
        self._bind_params: Mapping[str, Any] = {}
        self._options = ExecuteOptions()

    @property
    def done(self) -> bool:
        return self.state in _TERMINAL

    def start(self) -> UpsertStep:
        """Validate input and return the probe call (or an early failure)."""

        if self.state is not UpsertState.START:
            raise RuntimeError(f"upsert already started (state={self.state.value})")

        bind_params = self._bind_params_input
        if bind_params is None:
            bind_params = {}
        if not isinstance(bind_params, Mapping):
            return self._fail(InvalidBindParamsError())

        try:
            self._sqls = UpsertStatements.coerce(self._sqls_input)
            self._options = ExecuteOptions.coerce(self._options_input)
        except TypeError as exc:
            return self._fail(exc)

        self._bind_params = bind_params
        return self._enter(UpsertState.PROBING)

    def on_success(self, result: Any) -> UpsertStep:
        """Feed the result of the pending executor call."""

        state = self._require_running()

        if state is UpsertState.PROBING:
            if result:
                logger.debug("upsert probe matched a row, skipping insert")
                return self._enter(UpsertState.RUN_UPDATE)
            return self._enter(UpsertState.RUN_INSERT)

        if state is UpsertState.RUN_INSERT:
            if rows_affected(result) > 0:
                return self._finish(result)
            logger.debug("upsert insert affected no rows, falling back to update")
            return self._enter(UpsertState.RUN_UPDATE)

        if rows_affected(result) > 0:
            return self._finish(result)
        return self._fail(NoRowsUpdatedError())

    def on_error(self, error: BaseException) -> UpsertStep:
        """Feed the error raised by the pending executor call."""

        state = self._require_running()
        if state is UpsertState.RUN_INSERT and is_duplicate_key_error(error, self._markers):
            logger.info("upsert insert hit a duplicate key, falling back to update")
            return self._enter(UpsertState.RUN_UPDATE)
        return self._fail(error)

    def _require_running(self) -> UpsertState:
        if self.state is UpsertState.START or self.done:
            raise RuntimeError(f"no executor call is pending (state={self.state.value})")
        return self.state

    def _enter(self, state: UpsertState) -> StatementCall:
        logger.debug("upsert %s -> %s", self.state.value, state.value)
        self.state = state

        if state is UpsertState.PROBING:
            sql = self._sqls.query
            return StatementCall(
                StatementKind.QUERY,
                sql,
                filter_bind_params(sql, self._bind_params),
                self._options.for_probe(),
            )

        if state is UpsertState.RUN_INSERT:
            kind, sql = StatementKind.INSERT, self._sqls.insert
        else:
            kind, sql = StatementKind.UPDATE, self._sqls.update
        return StatementCall(
            kind,
            sql,
            filter_bind_params(sql, self._bind_params, self._options),
            self._options,
        )

    def _finish(self, result: Any) -> UpsertOutcome:
        logger.debug("upsert %s -> done", self.state.value)
        self.state = UpsertState.DONE
        self.outcome = UpsertOutcome(result=result)
        return self.outcome

    def _fail(self, error: BaseException) -> UpsertOutcome:
        logger.debug("upsert %s -> failed: %s", self.state.value, error)
        self.state = UpsertState.FAILED
        self.outcome = UpsertOutcome(error=error)
        return self.outcome
