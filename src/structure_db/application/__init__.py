"""Application layer - the public Connection, Statement and Row types."""

from structure_db.application.connection import Connection
from structure_db.application.row import Row
from structure_db.application.statement import Statement

__all__ = [
    "Connection",
    "Row",
    "Statement",
]
