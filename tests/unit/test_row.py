"""Unit tests for Row decoding."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from structure_db.application.row import Row, to_blob, to_int64, to_real, to_text
from structure_db.domain.errors import ResourceLifecycleViolation


@dataclass
class FakeStatement:
    """Just enough of a Statement for a Row to check its generation."""

    query: str = "SELECT ..."
    _generation: int = 1


def make_row(*values: object, names: tuple[str, ...] = ()) -> tuple[Row, FakeStatement]:
    statement = FakeStatement()
    columns = {name: index for index, name in enumerate(names)}
    return Row(statement, statement._generation, tuple(values), columns), statement  # type: ignore[arg-type]


@pytest.mark.unit
class TestConversions:
    """Tests for the column conversion rules."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, 0.0),
            (3, 3.0),
            (2.5, 2.5),
            ("1.5e2xyz", 150.0),
            ("  -.5", -0.5),
            ("abc", 0.0),
            (b"42", 42.0),
        ],
    )
    def test_to_real(self, value: object, expected: float) -> None:
        """Values read as REAL."""
        assert to_real(value) == expected  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, 0),
            (7, 7),
            (3.9, 3),
            (-3.9, -3),
            ("12abc", 12),
            ("3.9", 3),
            ("x", 0),
            (1e300, 2**63 - 1),
            (float("-inf"), -(2**63)),
            ("99999999999999999999", 2**63 - 1),
        ],
    )
    def test_to_int64(self, value: object, expected: int) -> None:
        """Values read as a 64-bit integer."""
        assert to_int64(value) == expected  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, None),
            ("abc", "abc"),
            (12, "12"),
            (1.0, "1.0"),
            (0.1, "0.1"),
            (1e20, "1.0e+20"),
            (1 / 3, "0.333333333333333"),
            (float("inf"), "Inf"),
            (b"caf\xc3\xa9", "café"),
        ],
    )
    def test_to_text(self, value: object, expected: str | None) -> None:
        """Values read as TEXT."""
        assert to_text(value) == expected  # type: ignore[arg-type]

    def test_to_blob(self) -> None:
        """Values read as BLOB."""
        assert to_blob(None) is None
        assert to_blob(b"\x00") == b"\x00"
        assert to_blob("é") == "é".encode("utf-8")
        assert to_blob(5) == b"5"

    def test_invalid_utf8_is_replaced(self) -> None:
        """Undecodable bytes do not raise."""
        assert to_text(b"\xff") == "�"


@pytest.mark.unit
class TestRow:
    """Tests for Row accessors."""

    def test_access_by_ordinal_and_name(self) -> None:
        """Ordinals and names address the same column."""
        row, _ = make_row(1, 2.5, "x", names=("a", "b", "c"))

        assert row.integer(0) == row.integer("a") == 1
        assert row.real(1) == row.real("b") == 2.5
        assert row.text(2) == row.text("c") == "x"

    def test_integer_wraps_to_32_bits(self) -> None:
        """integer() wraps, big_integer() does not."""
        row, _ = make_row(2**32 + 5, -(2**31) - 1, names=("big", "low"))

        assert row.integer("big") == 5
        assert row.big_integer("big") == 2**32 + 5
        assert row.integer("low") == 2**31 - 1

    def test_null_defaults(self) -> None:
        """NULL reads as zero for numbers and None for text and blobs."""
        row, _ = make_row(None, names=("n",))

        assert row.real("n") == 0.0
        assert row.integer("n") == 0
        assert row.big_integer("n") == 0
        assert row.text("n") is None
        assert row.blob("n") is None

    def test_unknown_name_defaults(self) -> None:
        """An unknown column name yields each accessor's default."""
        row, _ = make_row(1, names=("a",))

        assert row.real("missing") == 0.0
        assert row.integer("missing") == 0
        assert row.big_integer("missing") == 0
        assert row.text("missing") is None
        assert row.blob("missing") is None

    def test_ordinal_out_of_range(self) -> None:
        """An ordinal outside the row is an IndexError."""
        row, _ = make_row(1, names=("a",))

        with pytest.raises(IndexError):
            row.integer(1)
        with pytest.raises(IndexError):
            row.text(-1)

    def test_raw_access(self) -> None:
        """Indexing returns stored values; unknown names raise KeyError."""
        row, _ = make_row(1, "two", names=("a", "b"))

        assert row["b"] == "two"
        assert row[0] == 1
        with pytest.raises(KeyError):
            row["missing"]

    def test_inspection(self) -> None:
        """keys(), len() and as_dict() describe the row."""
        row, _ = make_row(1, "two", names=("a", "b"))

        assert row.keys() == ["a", "b"]
        assert len(row) == 2
        assert row.as_dict() == {"a": 1, "b": "two"}
        assert list(row) == [1, "two"]

    def test_stale_row(self) -> None:
        """A row is unusable once its statement moves on."""
        row, statement = make_row(1, names=("a",))
        statement._generation += 1

        with pytest.raises(ResourceLifecycleViolation):
            row.integer("a")
        with pytest.raises(ResourceLifecycleViolation):
            row.as_dict()
        with pytest.raises(ResourceLifecycleViolation):
            len(row)
