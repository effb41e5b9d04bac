"""Unit tests for importer and parser selection."""

from __future__ import annotations

import pytest

from core.config import TabulaConfig
from core.errors import TabulaConfigError
from core.types import DatasetOptions, SpreadsheetSource
from ingest.importers import LocalImporter, RemoteImporter, SpreadsheetImporter
from ingest.parsers import DelimitedParser, HtmlTableParser, ObjectParser, StrictParser
from ingest.selection import select_importer, select_parser


@pytest.mark.parametrize(
    ("options", "expected"),
    [
        (DatasetOptions(), ObjectParser),
        (DatasetOptions(strict_schema=True), StrictParser),
        (DatasetOptions(delimiter="\t"), DelimitedParser),
        (DatasetOptions(spreadsheet=SpreadsheetSource(key="k")), DelimitedParser),
        (DatasetOptions(dom_table="<table></table>"), HtmlTableParser),
        (DatasetOptions(format_hint="strict", delimiter=","), StrictParser),
    ],
)
def test_select_parser_follows_precedence(registry, options: DatasetOptions, expected: type) -> None:
    """Parser selection should follow the documented precedence."""
    assert isinstance(select_parser(options, registry), expected)


def test_select_parser_prefers_explicit_parser(registry) -> None:
    """An explicit parser should bypass selection."""
    parser = StrictParser(registry)

    assert select_parser(DatasetOptions(parser=parser, delimiter=","), registry) is parser


def test_select_parser_rejects_unknown_format(registry) -> None:
    """Unsupported format hints should fail."""
    with pytest.raises(TabulaConfigError):
        select_parser(DatasetOptions(format_hint="xlsx"), registry)


@pytest.mark.parametrize(
    ("options", "expected"),
    [
        (DatasetOptions(inline_data=[]), LocalImporter),
        (DatasetOptions(url="data.json"), RemoteImporter),
        (DatasetOptions(spreadsheet=SpreadsheetSource(key="k")), SpreadsheetImporter),
        (DatasetOptions(dom_table="<table></table>"), LocalImporter),
    ],
)
def test_select_importer_follows_precedence(registry, options: DatasetOptions, expected: type) -> None:
    """Importer selection should follow the documented precedence."""
    importer = select_importer(options, select_parser(options, registry), TabulaConfig.from_env())

    assert type(importer) is expected
