"""Domain services for connection-level coordination.

Services implement the logic that sits between the public Connection and
the relational engine: bind slot discovery, serialized execution, and the
transaction and migration protocols built on top of it.
"""

from structure_db.domain.services.bind_slots import ScanResult, leading_keyword, scan_query
from structure_db.domain.services.execution_queue import ExecutionQueue
from structure_db.domain.services.migration_controller import MigrationController
from structure_db.domain.services.transaction_controller import TransactionController

__all__ = [
    "ExecutionQueue",
    "MigrationController",
    "ScanResult",
    "TransactionController",
    "leading_keyword",
    "scan_query",
]
