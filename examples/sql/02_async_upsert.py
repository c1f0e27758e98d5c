"""Async upsert example: deferred handles, callbacks, and timeouts."""

from __future__ import annotations

import asyncio
import sqlite3
import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "mini_upsert").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mini_upsert import AsyncDatabase, NoRowsUpdatedError, SQLiteDialect, upsert_async

SQLS = {
    "query": "SELECT ID FROM MY_DATA WHERE ID = :id",
    "insert": "INSERT INTO MY_DATA (ID, NAME) VALUES (:id, :name)",
    "update": "UPDATE MY_DATA SET NAME = :name WHERE ID = :id",
}


async def main() -> None:
    conn = sqlite3.connect(":memory:")
    db = AsyncDatabase(conn, SQLiteDialect())
    try:
        await db.execute("CREATE TABLE MY_DATA (ID INTEGER PRIMARY KEY, NAME TEXT)")

        # Without a callback the call returns a task to await.
        result = await upsert_async(db, SQLS, {"id": 1, "name": "a"}, {"autoCommit": True})
        print("rows affected:", result.rows_affected)

        # Timeouts are the caller's business.
        result = await asyncio.wait_for(
            upsert_async(db, SQLS, {"id": 1, "name": "b"}, {"autoCommit": True}),
            timeout=5,
        )
        print("rows affected:", result.rows_affected)

        # The probe matches a row but the update predicate does not.
        broken = dict(SQLS, update="UPDATE MY_DATA SET NAME = :name WHERE ID = -1")
        try:
            await upsert_async(db, broken, {"id": 1, "name": "c"})
        except NoRowsUpdatedError as exc:
            print("expected failure:", exc)

        done = asyncio.Event()

        def on_upsert(error, result):  # noqa: ANN001,ANN202
            print("callback:", error, result)
            done.set()

        upsert_async(db, SQLS, {"id": 2, "name": "z"}, on_upsert)
        await done.wait()
    finally:
        await db.aclose()


if __name__ == "__main__":
    asyncio.run(main())
