"""Ports layer - interface definitions following Hexagonal Architecture.

Ports are abstract interfaces (protocols) that define contracts. The
connection depends on the relational engine only through the outbound
``RelationalEngine`` and ``PreparedHandle`` protocols; the SQLite adapter
implements them.
"""

from structure_db.ports.outbound import (
    MEMORY_LOCATION,
    EngineFactory,
    PreparedHandle,
    RelationalEngine,
)

__all__ = [
    "MEMORY_LOCATION",
    "EngineFactory",
    "PreparedHandle",
    "RelationalEngine",
]
