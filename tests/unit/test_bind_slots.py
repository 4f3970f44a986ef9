"""Unit tests for bind slot discovery."""

from __future__ import annotations

import pytest

from structure_db.domain.services.bind_slots import leading_keyword, scan_query


@pytest.mark.unit
class TestScanQuery:
    """Tests for scan_query."""

    def test_no_parameters(self) -> None:
        """A query without variables has no slots."""
        result = scan_query("SELECT 1")

        assert result.parameter_names == ()
        assert result.parameter_count == 0
        assert result.returns_rows

    def test_named_parameters_in_order(self) -> None:
        """Named variables take consecutive slots, prefix included."""
        result = scan_query("SELECT a,b,c FROM t WHERE b IS :ONE OR b IS $TWO OR c IS @THREE")

        assert result.parameter_names == (":ONE", "$TWO", "@THREE")
        assert not result.has_unnamed

    def test_repeated_name_shares_slot(self) -> None:
        """A repeated variable reuses its first slot."""
        result = scan_query("SELECT :a, :b, :a")

        assert result.parameter_names == (":a", ":b")

    def test_same_key_different_prefix(self) -> None:
        """Variables differing only by prefix are distinct slots."""
        result = scan_query("SELECT :a, @a")

        assert result.parameter_names == (":a", "@a")

    def test_unnamed_parameters(self) -> None:
        """Question marks are unnamed slots."""
        result = scan_query("INSERT INTO t VALUES (?, :name, ?)")

        assert result.parameter_names == (None, ":name", None)
        assert result.has_unnamed

    def test_numbered_parameter(self) -> None:
        """?NNN takes slot NNN and later variables continue after it."""
        result = scan_query("SELECT ?3, :x")

        assert result.parameter_names == (None, None, None, ":x")

    def test_literals_and_comments_skipped(self) -> None:
        """Variables inside strings, identifiers and comments are ignored."""
        query = """
            -- :comment
            SELECT 'a:b', "c@d", [e$f], `g:h` /* :block */ FROM t WHERE x = :real
        """
        result = scan_query(query)

        assert result.parameter_names == (":real",)

    def test_escaped_quote(self) -> None:
        """Doubled quotes do not end a string literal."""
        result = scan_query("SELECT 'it''s :not' , :yes")

        assert result.parameter_names == (":yes",)

    def test_empty_name(self) -> None:
        """A bare prefix is reported as-is."""
        assert scan_query("SELECT : + 1").parameter_names == (":",)

    def test_hash_prefix(self) -> None:
        """SQLite's # prefix is recognised as a variable."""
        assert scan_query("SELECT #x").parameter_names == ("#x",)


@pytest.mark.unit
class TestLeadingKeyword:
    """Tests for leading_keyword."""

    @pytest.mark.parametrize(
        ("query", "keyword"),
        [
            ("select 1", "SELECT"),
            ("  -- note\n  Insert INTO t VALUES (1)", "INSERT"),
            ("/* c */ WITH x AS (SELECT 1) SELECT * FROM x", "WITH"),
            ("PRAGMA user_version", "PRAGMA"),
            ("VALUES (1)", "VALUES"),
        ],
    )
    def test_keyword(self, query: str, keyword: str) -> None:
        """The first word is returned upper-cased."""
        assert leading_keyword(query) == keyword

    @pytest.mark.parametrize("query", ["", "   ", "-- only a comment", "/* x */ ;"])
    def test_no_keyword(self, query: str) -> None:
        """Whitespace, comments and punctuation have no keyword."""
        assert leading_keyword(query) is None

    def test_returns_rows(self) -> None:
        """Only SELECT, VALUES and WITH are row queries."""
        assert scan_query("VALUES (1)").returns_rows
        assert not scan_query("INSERT INTO t VALUES (1)").returns_rows
        assert not scan_query("PRAGMA user_version").returns_rows
