"""Async upsert orchestrator over an `AsyncStatementExecutorPort`."""

from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Sequence

from ._async_utils import _call_maybe_async
from .contracts import AsyncStatementExecutorPort
from .types import BindParams, UpsertCallback
from .upsert import OptionsInput, SqlsInput, resolve_duplicate_key_markers, split_callback
from .upsert_state import StatementCall, UpsertMachine
from .upsert_types import ExecuteOptions, UpsertOutcome


class AsyncUpserter:
    """Async insert-or-update orchestrator bound to one statement executor.

    Executor methods may be coroutines or plain functions. The three steps
    run strictly one after another; there is no internal timeout, wrap the
    call in `asyncio.wait_for` when one is needed.
    """

    def __init__(
        self,
        executor: AsyncStatementExecutorPort,
        *,
        duplicate_key_markers: Optional[Sequence[str]] = None,
    ):
        self.executor = executor
        self.duplicate_key_markers = resolve_duplicate_key_markers(
            executor, duplicate_key_markers
        )

    async def run(
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
                result = await _call_maybe_async(method, step.sql, step.params, step.options)
            except Exception as exc:
                step = machine.on_error(exc)
            else:
                step = machine.on_success(result)
        return step

    async def _settle(
        self,
        sqls: SqlsInput,
        bind_params: BindParams | None,
        options: ExecuteOptions | Mapping[str, Any] | None,
    ) -> Any:
        outcome = await self.run(sqls, bind_params, options)
        return outcome.unwrap()

    def upsert(
        self,
        sqls: SqlsInput,
        bind_params: BindParams | None,
        options: OptionsInput = None,
        callback: Optional[UpsertCallback] = None,
    ) -> asyncio.Task:
        """Schedule an upsert on the running event loop.

        Returns the task driving the upsert. Awaiting it yields the write
        result or raises the error. With `callback`, `callback(error, result)`
        is also called once the task settles.
        """

        options, callback = split_callback(options, callback)
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._settle(sqls, bind_params, options))
        if callback is not None:
            task.add_done_callback(_callback_adapter(callback))
        return task


def _callback_adapter(callback: UpsertCallback):
    def _on_done(task: asyncio.Future) -> None:
        if task.cancelled():
            callback(asyncio.CancelledError(), None)
            return
        error = task.exception()
        if error is not None:
            callback(error, None)
        else:
            callback(None, task.result())

    return _on_done


def upsert_async(
    executor: AsyncStatementExecutorPort,
    sqls: SqlsInput,
    bind_params: BindParams | None,
    options: OptionsInput = None,
    callback: Optional[UpsertCallback] = None,
    *,
    duplicate_key_markers: Optional[Sequence[str]] = None,
) -> asyncio.Task:
    """Functional form of `AsyncUpserter.upsert`."""

    upserter = AsyncUpserter(executor, duplicate_key_markers=duplicate_key_markers)
    return upserter.upsert(sqls, bind_params, options, callback)
