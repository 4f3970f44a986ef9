"""Outbound ports - interfaces for external dependencies.

The only external dependency is the embedded relational engine.
"""

from structure_db.ports.outbound.relational_engine import (
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
