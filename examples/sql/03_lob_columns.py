"""Upsert with a LOB column written through an EMPTY_CLOB() placeholder."""

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

from mini_upsert import Database, ExecuteOptions, SQLiteDialect, upsert

SQLS = {
    "query": "SELECT ID FROM DOCS WHERE ID = :id",
    "insert": "INSERT INTO DOCS (ID, NAME, LOB_DATA) VALUES (:id, :name, EMPTY_CLOB())",
    "update": "UPDATE DOCS SET NAME = :name, LOB_DATA = EMPTY_CLOB() WHERE ID = :id",
}


def main() -> None:
    conn = sqlite3.connect(":memory:")
    db = Database(conn, SQLiteDialect())
    try:
        db.execute("CREATE TABLE DOCS (ID INTEGER PRIMARY KEY, NAME TEXT, LOB_DATA TEXT)")

        # `lobData` never appears as a :token in the SQL; the LOB map keeps it
        # in the bind params and binds it in place of EMPTY_CLOB().
        options = ExecuteOptions(auto_commit=True, lob_meta_info={"LOB_DATA": "lobData"})
        for text in ("first draft", "final text"):
            upsert(db, SQLS, {"id": 1, "name": "doc", "lobData": text}, options)
            print(db.query("SELECT * FROM DOCS"))
    finally:
        db.close()


if __name__ == "__main__":
    main()
