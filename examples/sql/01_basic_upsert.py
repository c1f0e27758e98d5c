"""Basic insert-or-update example for mini_upsert over SQLite."""

from __future__ import annotations

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

from mini_upsert import Database, SQLiteDialect, Upserter, UpsertStatements

SQLS = UpsertStatements(
    query="SELECT ID FROM MY_DATA WHERE ID = :id",
    insert="INSERT INTO MY_DATA (ID, NAME) VALUES (:id, :name)",
    update="UPDATE MY_DATA SET NAME = :name WHERE ID = :id",
)


def main() -> None:
    # 1) Create DB adapter and table.
    conn = sqlite3.connect(":memory:")
    db = Database(conn, SQLiteDialect())
    upserter = Upserter(db)

    try:
        db.execute("CREATE TABLE MY_DATA (ID INTEGER PRIMARY KEY, NAME TEXT)")

        # 2) Row is missing: the probe finds nothing, so INSERT runs.
        result = upserter.upsert(SQLS, {"id": 110, "name": "first"}, {"autoCommit": True})
        print("insert rows affected:", result.rows_affected)

        # 3) Row exists: INSERT is skipped and UPDATE runs.
        result = upserter.upsert(SQLS, {"id": 110, "name": "second"}, {"autoCommit": True})
        print("update rows affected:", result.rows_affected)

        # 4) Callback style receives (error, result).
        def on_upsert(error, result):  # noqa: ANN001,ANN202
            if error:
                print("upsert failed:", error)
            else:
                print("callback rows affected:", result.rows_affected)

        upserter.upsert(SQLS, {"id": 111, "name": "third"}, on_upsert)

        print("rows:", db.query("SELECT * FROM MY_DATA ORDER BY ID"))
    finally:
        db.close()


if __name__ == "__main__":
    main()
