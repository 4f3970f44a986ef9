"""Migration records for replaying an ordered schema history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from structure_db.application.connection import Connection


def validate_version(version: int) -> int:
    """Return ``version`` if it is a usable migration target.

    Raises:
        TypeError: If it is not an int.
        ValueError: If it is negative.
    """
    if isinstance(version, bool) or not isinstance(version, int):
        raise TypeError(f"Migration version must be an int, got {type(version).__name__}")
    if version < 0:
        raise ValueError(f"Migration version must not be negative, got {version}")
    return version


@dataclass(frozen=True, slots=True)
class Migration:
    """One step of a schema history.

    Attributes:
        version: Schema version the database reaches once applied.
        body: Receives the connection and performs the schema change.
        description: Free text for logs.
    """

    version: int
    body: Callable[["Connection"], Any]
    description: str = ""

    def __post_init__(self) -> None:
        validate_version(self.version)
