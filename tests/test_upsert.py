from __future__ import annotations

import unittest
from typing import Any

from mini_upsert import (
    ExecuteOptions,
    InvalidBindParamsError,
    NoRowsUpdatedError,
    Upserter,
    UpsertStatements,
    WriteResult,
    upsert,
)

SQLS = {
    "query": "SELECT ID FROM MY_DATA WHERE ID = :id",
    "insert": "INSERT INTO MY_DATA (ID, NAME) VALUES (:id, :name)",
    "update": "UPDATE MY_DATA SET NAME = :name WHERE ID = :id",
}


class _FakeExecutor:
    """Executor double; each step is a return value or an exception to raise."""

    def __init__(self, *, query: Any = None, insert: Any = None, update: Any = None):
        self._steps = {"query": query, "insert": insert, "update": update}
        self.calls: list[tuple[str, str, dict, ExecuteOptions]] = []

    def _run(self, kind: str, sql: str, params: dict, options: ExecuteOptions) -> Any:
        self.calls.append((kind, sql, params, options))
        step = self._steps[kind]
        if step is None:
            raise AssertionError(f"unexpected {kind} call")
        if isinstance(step, BaseException):
            raise step
        return step

    def query(self, sql, params=None, options=None):  # noqa: ANN001,ANN201
        return self._run("query", sql, params, options)

    def insert(self, sql, params=None, options=None):  # noqa: ANN001,ANN201
        return self._run("insert", sql, params, options)

    def update(self, sql, params=None, options=None):  # noqa: ANN001,ANN201
        return self._run("update", sql, params, options)

    def kinds(self) -> list[str]:
        return [call[0] for call in self.calls]


class UpsertFlowTests(unittest.TestCase):
    def test_positional_bind_params_fail_without_executor_calls(self) -> None:
        executor = _FakeExecutor()
        for bad in ([], [1, 2], (1,), "id"):
            with self.assertRaises(InvalidBindParamsError):
                Upserter(executor).upsert(SQLS, bad, {})
        self.assertEqual(executor.calls, [])

    def test_invalid_bind_params_error_is_a_type_error(self) -> None:
        with self.assertRaises(TypeError):
            upsert(_FakeExecutor(), SQLS, [])

    def test_probe_error_is_surfaced_verbatim(self) -> None:
        error = RuntimeError("test query error")
        executor = _FakeExecutor(query=error)

        with self.assertRaises(RuntimeError) as ctx:
            upsert(executor, SQLS, {"id": 1}, {})

        self.assertIs(ctx.exception, error)
        self.assertEqual(executor.kinds(), ["query"])

    def test_none_bind_params_and_options_are_normalized(self) -> None:
        executor = _FakeExecutor(query=RuntimeError("test error"))

        with self.assertRaises(RuntimeError):
            upsert(executor, SQLS, None)

        _, _, params, options = executor.calls[0]
        self.assertEqual(params, {})
        self.assertEqual(options.max_rows, 1)
        self.assertFalse(options.result_set)

    def test_insert_general_error_is_surfaced(self) -> None:
        error = ValueError("test insert error")
        executor = _FakeExecutor(query=[], insert=error)

        with self.assertRaises(ValueError) as ctx:
            upsert(executor, SQLS, {"id": 1, "name": "a"})

        self.assertIs(ctx.exception, error)
        self.assertEqual(executor.kinds(), ["query", "insert"])

    def test_insert_valid_skips_update(self) -> None:
        inserted = WriteResult(rows_affected=1)
        executor = _FakeExecutor(query=[], insert=inserted)

        result = upsert(executor, SQLS, {"id": 1, "name": "a"})

        self.assertIs(result, inserted)
        self.assertEqual(executor.kinds(), ["query", "insert"])

    def test_duplicate_key_on_insert_falls_back_to_update(self) -> None:
        updated = WriteResult(rows_affected=1)
        executor = _FakeExecutor(
            query=[],
            insert=RuntimeError("ORA-00001: unique constraint (X.PK) violated"),
            update=updated,
        )

        result = upsert(executor, SQLS, {"id": 1, "name": "a"})

        self.assertIs(result, updated)
        self.assertEqual(executor.kinds(), ["query", "insert", "update"])

    def test_duplicate_key_then_update_error(self) -> None:
        error = RuntimeError("test update error")
        executor = _FakeExecutor(
            query=[],
            insert=RuntimeError("test ORA-00001 error"),
            update=error,
        )

        with self.assertRaises(RuntimeError) as ctx:
            upsert(executor, SQLS, {"id": 1})

        self.assertIs(ctx.exception, error)

    def test_insert_without_effect_falls_back_to_update(self) -> None:
        updated = {"rowsAffected": 1}
        executor = _FakeExecutor(query=[], insert=WriteResult(rows_affected=0), update=updated)

        result = upsert(executor, SQLS, {"id": 1, "name": "a"})

        self.assertEqual(result, {"rowsAffected": 1})
        self.assertEqual(executor.kinds(), ["query", "insert", "update"])

    def test_existing_row_runs_update_only(self) -> None:
        updated = WriteResult(rows_affected=1)
        executor = _FakeExecutor(query=[{"ID": 1}], update=updated)

        result = upsert(executor, SQLS, {"id": 1, "name": "a"})

        self.assertIs(result, updated)
        self.assertEqual(executor.kinds(), ["query", "update"])

    def test_existing_row_update_error(self) -> None:
        executor = _FakeExecutor(query=[{}], update=RuntimeError("test update2 error"))

        with self.assertRaisesRegex(RuntimeError, "test update2 error"):
            upsert(executor, SQLS, {"id": 1})

    def test_update_without_effect_raises_no_rows_updated(self) -> None:
        executor = _FakeExecutor(query=[{}], update=WriteResult(rows_affected=0))

        with self.assertRaises(NoRowsUpdatedError) as ctx:
            upsert(executor, SQLS, {"id": 1})

        self.assertEqual(str(ctx.exception), "No rows updated.")

    def test_update_with_missing_count_raises_no_rows_updated(self) -> None:
        executor = _FakeExecutor(query=[{}], update={})

        with self.assertRaises(NoRowsUpdatedError):
            upsert(executor, SQLS, {"id": 1})

    def test_custom_duplicate_key_markers(self) -> None:
        executor = _FakeExecutor(
            query=[],
            insert=RuntimeError("UNIQUE constraint failed: t.id"),
            update=WriteResult(rows_affected=1),
        )

        upserter = Upserter(executor, duplicate_key_markers=["UNIQUE constraint failed"])
        upserter.upsert(SQLS, {"id": 1})

        self.assertEqual(executor.kinds(), ["query", "insert", "update"])

    def test_default_markers_do_not_match_other_databases(self) -> None:
        error = RuntimeError("UNIQUE constraint failed: t.id")
        executor = _FakeExecutor(query=[], insert=error)

        with self.assertRaises(RuntimeError) as ctx:
            upsert(executor, SQLS, {"id": 1})

        self.assertIs(ctx.exception, error)


class UpsertParamsAndOptionsTests(unittest.TestCase):
    def test_missing_statement_fails_without_executor_calls(self) -> None:
        executor = _FakeExecutor(query=[], insert=WriteResult(rows_affected=1))
        for key in ("query", "insert", "update"):
            sqls = {k: v for k, v in SQLS.items() if k != key}
            with self.assertRaisesRegex(TypeError, repr(key)):
                upsert(executor, sqls, {"id": 1, "name": "a"})
        self.assertEqual(executor.calls, [])

    def test_statements_coerce_rejects_empty_statement(self) -> None:
        with self.assertRaisesRegex(TypeError, "'query'"):
            UpsertStatements.coerce(dict(SQLS, query=""))
        with self.assertRaisesRegex(TypeError, "'insert'"):
            UpsertStatements.coerce(UpsertStatements(query="q", update="u"))
        with self.assertRaises(TypeError):
            UpsertStatements.coerce(None)
        self.assertEqual(UpsertStatements.coerce(SQLS).update, SQLS["update"])

    def test_each_statement_receives_only_its_params(self) -> None:
        executor = _FakeExecutor(
            query=[],
            insert=RuntimeError("ORA-00001"),
            update=WriteResult(rows_affected=1),
        )
        sqls = UpsertStatements(
            query="SELECT ID FROM T WHERE ID = :id",
            insert="INSERT INTO T (ID, NAME, LOB_DATA) VALUES (:id, :name, EMPTY_CLOB())",
            update="UPDATE T SET LOB_DATA = EMPTY_CLOB() WHERE ID = :id",
        )
        bind_params = {"id": 110, "name": "new name", "lobData": "clob text"}

        upsert(
            executor,
            sqls,
            bind_params,
            {"autoCommit": True, "lobMetaInfo": {"LOB_DATA": "lobData"}},
        )

        query_params = executor.calls[0][2]
        insert_params = executor.calls[1][2]
        update_params = executor.calls[2][2]
        self.assertEqual(query_params, {"id": 110})
        self.assertEqual(insert_params, bind_params)
        self.assertEqual(update_params, {"id": 110, "lobData": "clob text"})

    def test_probe_options_are_a_local_copy(self) -> None:
        options = ExecuteOptions(max_rows=50, result_set=True, auto_commit=False)
        executor = _FakeExecutor(query=[], insert=WriteResult(rows_affected=1))

        upsert(executor, SQLS, {"id": 1, "name": "a"}, options)

        probe_options = executor.calls[0][3]
        insert_options = executor.calls[1][3]
        self.assertEqual(probe_options.max_rows, 1)
        self.assertFalse(probe_options.result_set)
        self.assertEqual(insert_options.max_rows, 50)
        self.assertTrue(insert_options.result_set)
        self.assertFalse(insert_options.auto_commit)
        self.assertEqual(options.max_rows, 50)
        self.assertTrue(options.result_set)

    def test_bind_params_mapping_is_not_mutated(self) -> None:
        bind_params = {"id": 1, "name": "a", "unused": 3}
        executor = _FakeExecutor(query=[], insert=WriteResult(rows_affected=1))

        upsert(executor, SQLS, bind_params)

        self.assertEqual(bind_params, {"id": 1, "name": "a", "unused": 3})
        self.assertNotIn("unused", executor.calls[1][2])


class UpsertCallbackTests(unittest.TestCase):
    def _collect(self) -> tuple[list[tuple[Any, Any]], Any]:
        received: list[tuple[Any, Any]] = []

        def _callback(error, result):  # noqa: ANN001,ANN202
            received.append((error, result))

        return received, _callback

    def test_callback_receives_result(self) -> None:
        inserted = WriteResult(rows_affected=1)
        executor = _FakeExecutor(query=[], insert=inserted)
        received, callback = self._collect()

        returned = upsert(executor, SQLS, {"id": 1}, {}, callback)

        self.assertIsNone(returned)
        self.assertEqual(received, [(None, inserted)])

    def test_callback_receives_error_without_result(self) -> None:
        error = RuntimeError("test query error")
        executor = _FakeExecutor(query=error)
        received, callback = self._collect()

        upsert(executor, SQLS, {"id": 1}, {}, callback)

        self.assertEqual(received, [(error, None)])

    def test_callable_options_is_treated_as_callback(self) -> None:
        executor = _FakeExecutor(query=[{}], update=WriteResult(rows_affected=0))
        received, callback = self._collect()

        Upserter(executor).upsert(SQLS, {"id": 1}, callback)

        self.assertEqual(len(received), 1)
        error, result = received[0]
        self.assertIsInstance(error, NoRowsUpdatedError)
        self.assertIsNone(result)

    def test_invalid_bind_params_reported_through_callback(self) -> None:
        executor = _FakeExecutor()
        received, callback = self._collect()

        upsert(executor, SQLS, [], callback)

        self.assertIsInstance(received[0][0], InvalidBindParamsError)
        self.assertEqual(executor.calls, [])

    def test_run_returns_outcome_without_raising(self) -> None:
        error = RuntimeError("boom")
        outcome = Upserter(_FakeExecutor(query=error)).run(SQLS, {"id": 1})

        self.assertFalse(outcome.ok)
        self.assertIs(outcome.error, error)
        self.assertIsNone(outcome.result)


class DuplicateKeyMarkerResolutionTests(unittest.TestCase):
    def test_markers_default_to_executor_dialect(self) -> None:
        class _Dialect:
            duplicate_key_markers = ("Duplicate entry",)

        executor = _FakeExecutor()
        executor.dialect = _Dialect()  # type: ignore[attr-defined]

        self.assertEqual(Upserter(executor).duplicate_key_markers, ("Duplicate entry",))

    def test_markers_fall_back_to_oracle(self) -> None:
        self.assertEqual(Upserter(_FakeExecutor()).duplicate_key_markers, ("ORA-00001",))


if __name__ == "__main__":
    unittest.main()
