"""Adapters layer - concrete implementations of port interfaces."""

from structure_db.adapters.outbound import SQLiteEngine, SQLitePreparedStatement, open_sqlite

__all__ = [
    "SQLiteEngine",
    "SQLitePreparedStatement",
    "open_sqlite",
]
