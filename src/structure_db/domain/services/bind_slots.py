"""Bind slot discovery.

Finds the bind parameters of a query and numbers them the way SQLite does:

    - ``?`` takes the next free index,
    - ``?NNN`` takes index NNN,
    - ``:name``, ``@name``, ``$name`` (and ``#name``) take the next free
      index the first time a token appears and reuse it afterwards.

The result is the per-slot name list an engine reports through
``sqlite3_bind_parameter_name``: prefix included, None for unnamed slots.
String literals, quoted identifiers and comments are skipped, so a ``:``
inside ``'a:b'`` is not a parameter.

The scan also reports the query's first keyword, which callers use to tell
row-producing queries (``SELECT``, ``VALUES``, ``WITH``) from the rest.

References:
    - SQLite tokenizer rules: https://www.sqlite.org/lang_expr.html#varparam
"""

from __future__ import annotations

from dataclasses import dataclass

VARIABLE_PREFIXES = frozenset(":@$#")
"""Characters SQLite accepts in front of a named variable."""

NAMED_PREFIXES = frozenset(":@$")
"""Prefixes structure-db accepts for bind parameters."""

ROW_KEYWORDS = frozenset({"SELECT", "VALUES", "WITH"})


def _is_id_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_" or ord(ch) >= 0x80


def _is_id_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$" or ord(ch) >= 0x80


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Outcome of scanning one query.

    Attributes:
        parameter_names: Name of each slot in index order (slot 1 first),
            prefix included; None for unnamed slots.
        leading_keyword: First keyword of the query, upper-cased, or None
            if the query holds only whitespace and comments.
    """

    parameter_names: tuple[str | None, ...]
    leading_keyword: str | None

    @property
    def parameter_count(self) -> int:
        return len(self.parameter_names)

    @property
    def has_unnamed(self) -> bool:
        return any(name is None for name in self.parameter_names)

    @property
    def returns_rows(self) -> bool:
        """Whether the query is a plain row-producing query."""
        return self.leading_keyword in ROW_KEYWORDS


def _skip_quoted(query: str, start: int, quote: str) -> int:
    """Return the index just past a quoted run; doubled quotes are escapes."""
    i = start + 1
    n = len(query)
    while i < n:
        if query[i] == quote:
            if i + 1 < n and query[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def scan_query(query: str) -> ScanResult:
    """Scan ``query`` for bind slots and its leading keyword."""
    names: dict[int, str | None] = {}
    indexes: dict[str, int] = {}
    max_index = 0
    keyword: str | None = None

    i = 0
    n = len(query)
    while i < n:
        ch = query[i]

        if ch.isspace():
            i += 1
        elif query.startswith("--", i):
            end = query.find("\n", i)
            i = n if end < 0 else end + 1
        elif query.startswith("/*", i):
            end = query.find("*/", i + 2)
            i = n if end < 0 else end + 2
        elif ch in "'\"`":
            i = _skip_quoted(query, i, ch)
        elif ch == "[":
            end = query.find("]", i + 1)
            i = n if end < 0 else end + 1
        elif ch == "?":
            j = i + 1
            while j < n and query[j].isdigit():
                j += 1
            index = int(query[i + 1:j]) if j > i + 1 else max_index + 1
            names.setdefault(index, None)
            max_index = max(max_index, index)
            i = j
        elif ch in VARIABLE_PREFIXES:
            j = i + 1
            while j < n and _is_id_char(query[j]):
                j += 1
            token = query[i:j]
            if token not in indexes:
                max_index += 1
                indexes[token] = max_index
                names[max_index] = token
            i = j
        elif _is_id_start(ch) or ch.isdigit():
            j = i + 1
            while j < n and _is_id_char(query[j]):
                j += 1
            if keyword is None and not ch.isdigit():
                keyword = query[i:j].upper()
            i = j
        else:
            i += 1

    return ScanResult(
        parameter_names=tuple(names.get(index) for index in range(1, max_index + 1)),
        leading_keyword=keyword,
    )


def leading_keyword(query: str) -> str | None:
    """First keyword of ``query``, upper-cased."""
    return scan_query(query).leading_keyword
