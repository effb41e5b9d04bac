"""Unit tests for format parsers."""

from __future__ import annotations

import pytest

from core.errors import TabulaIngestError
from ingest.parsers import DelimitedParser, HtmlTableParser, ObjectParser, StrictParser
from tests.fixture_paths import read_fixture_text


def test_object_parser_unions_keys_in_order(registry) -> None:
    """Columns should follow first-seen key order with gaps as None."""
    parsed = ObjectParser(registry).parse([{"a": 1}, {"b": "x", "a": 2}])

    assert [column.name for column in parsed.columns] == ["a", "b"]
    assert list(parsed.columns[1].data) == [None, "x"]
    assert parsed.columns[0].type == "number"


def test_object_parser_extracts_identities(registry) -> None:
    """An _id key should become row identities, not a column."""
    parsed = ObjectParser(registry).parse([{"_id": "r1", "a": 1}, {"_id": "r2", "a": 2}])

    assert parsed.identities == ("r1", "r2")
    assert [column.name for column in parsed.columns] == ["a"]


def test_object_parser_marks_disagreeing_values_mixed(registry) -> None:
    """Columns whose values classify differently should be mixed."""
    parsed = ObjectParser(registry).parse([{"a": 1}, {"a": "word"}])

    assert parsed.columns[0].type == "mixed"


def test_object_parser_rejects_non_rows(registry) -> None:
    """Payloads must be lists of mappings."""
    with pytest.raises(TabulaIngestError):
        ObjectParser(registry).parse({"a": 1})
    with pytest.raises(TabulaIngestError):
        ObjectParser(registry).parse([1, 2])


def test_strict_parser_reads_declared_types(registry) -> None:
    """Strict payloads should keep declared types and identities."""
    import json

    parsed = StrictParser(registry).parse(json.loads(read_fixture_text("strict.json")))

    assert parsed.identities == (101, 102, 103)
    assert [(column.name, column.type) for column in parsed.columns] == [
        ("city", "string"),
        ("population", "number"),
    ]


def test_strict_parser_rejects_unequal_columns(registry) -> None:
    """Strict columns should share one length."""
    payload = {"columns": [{"name": "a", "data": [1]}, {"name": "b", "data": [1, 2]}]}

    with pytest.raises(TabulaIngestError):
        StrictParser(registry).parse(payload)


def test_strict_parser_requires_columns(registry) -> None:
    """A payload without a columns list should be rejected."""
    with pytest.raises(TabulaIngestError):
        StrictParser(registry).parse([{"a": 1}])


def test_delimited_parser_infers_types(registry) -> None:
    """Header names and cell types should be inferred from text."""
    parsed = DelimitedParser(registry).parse(read_fixture_text("people.csv"))

    assert [(column.name, column.type) for column in parsed.columns] == [
        ("name", "string"),
        ("age", "number"),
        ("joined", "time"),
        ("active", "boolean"),
    ]
    assert parsed.row_count == 3


def test_delimited_parser_honors_delimiter(registry) -> None:
    """Custom delimiters and blank cells should be supported."""
    parsed = DelimitedParser(registry, ";").parse("a;b\n1;\n2;x\n")

    assert list(parsed.columns[1].data) == [None, "x"]


def test_delimited_parser_rejects_ragged_lines(registry) -> None:
    """Lines with the wrong field count should be reported."""
    with pytest.raises(TabulaIngestError, match="Line 3"):
        DelimitedParser(registry).parse("a,b\n1,2\n3\n")


def test_html_table_parser_reads_header_and_rows(registry) -> None:
    """The first table should be parsed with its th header."""
    parsed = HtmlTableParser(registry).parse(read_fixture_text("table.html"))

    assert [column.name for column in parsed.columns] == ["team", "score"]
    assert list(parsed.columns[1].data) == ["12", "7"]
    assert parsed.columns[1].type == "number"
