"""User-defined scalar functions registered when a connection opens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from structure_db.domain.value_objects.bind_values import SQLValue


@dataclass(frozen=True, slots=True)
class ScalarFunction:
    """A Python callable exposed to SQL as a scalar function.

    Attributes:
        name: SQL name. Registering a built-in name (e.g. ``UPPER``)
            replaces the engine's implementation for this connection.
        num_args: Number of SQL arguments, or -1 for any number.
        func: The implementation. Receives the SQL arguments, preceded by
            the owning connection when ``pass_connection`` is set.
        deterministic: Whether the same arguments always give the same result.
        pass_connection: Hand the owning connection to ``func``.
    """

    name: str
    num_args: int
    func: Callable[..., Any]
    deterministic: bool = True
    pass_connection: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Scalar function name must not be empty")
        if self.num_args < -1:
            raise ValueError(f"num_args must be -1 or non-negative, got {self.num_args}")


def _as_text(value: SQLValue) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def unicode_upper(value: SQLValue) -> str | None:
    """UPPER using Python's full Unicode case mapping (``"straße"`` -> ``"STRASSE"``)."""
    text = _as_text(value)
    return None if text is None else text.upper()


def unicode_lower(value: SQLValue) -> str | None:
    """LOWER using Python's full Unicode case mapping."""
    text = _as_text(value)
    return None if text is None else text.lower()


UNICODE_CASE_FUNCTIONS: tuple[ScalarFunction, ...] = (
    ScalarFunction("UPPER", 1, unicode_upper),
    ScalarFunction("LOWER", 1, unicode_lower),
)
