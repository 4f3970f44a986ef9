"""Outbound adapters - implementations of outbound ports.

The SQLite adapter implements the RelationalEngine port on top of the
standard library ``sqlite3`` driver.
"""

from structure_db.adapters.outbound.sqlite_engine import (
    SQLiteEngine,
    SQLitePreparedStatement,
    open_sqlite,
    split_statements,
    translate_error,
)

__all__ = [
    "SQLiteEngine",
    "SQLitePreparedStatement",
    "open_sqlite",
    "split_statements",
    "translate_error",
]
