"""Importer and parser selection from dataset options.

An explicit parser or importer always wins. Otherwise the parser is
chosen from the format hint, then strict, delimiter, spreadsheet and
HTML options, defaulting to the raw object parser; the importer is
chosen from url, then spreadsheet, then in-memory data.
"""

from __future__ import annotations

from core.config import TabulaConfig
from core.constants import DEFAULT_DELIMITER, SUPPORTED_FORMAT_HINTS
from core.errors import TabulaConfigError
from core.types import DatasetOptions
from ingest.importers import Importer, LocalImporter, RemoteImporter, SpreadsheetImporter
from ingest.parsers import (
    DelimitedParser,
    HtmlTableParser,
    NestedFactory,
    ObjectParser,
    Parser,
    StrictParser,
)
from store.type_registry import TypeRegistry


def select_parser(
    options: DatasetOptions,
    registry: TypeRegistry,
    nested_factory: NestedFactory | None = None,
) -> Parser:
    """Choose the parser for a dataset's source.

    Raises:
        TabulaConfigError: If ``format_hint`` is not supported.
    """
    if options.parser is not None:
        return options.parser
    delimiter = options.delimiter or DEFAULT_DELIMITER
    if options.format_hint is not None:
        if options.format_hint not in SUPPORTED_FORMAT_HINTS:
            raise TabulaConfigError(
                f"Unsupported format_hint '{options.format_hint}'. "
                f"Use one of {SUPPORTED_FORMAT_HINTS}."
            )
        if options.format_hint == "strict":
            return StrictParser(registry)
        if options.format_hint == "delimited":
            return DelimitedParser(registry, delimiter)
        if options.format_hint == "html":
            return HtmlTableParser(registry)
        return ObjectParser(registry, options.build_nested_datasets, nested_factory)
    if options.strict_schema:
        return StrictParser(registry)
    if options.delimiter or options.spreadsheet is not None:
        return DelimitedParser(registry, delimiter)
    if options.dom_table is not None:
        return HtmlTableParser(registry)
    return ObjectParser(registry, options.build_nested_datasets, nested_factory)


def select_importer(options: DatasetOptions, parser: Parser, config: TabulaConfig) -> Importer:
    """Choose the importer for a dataset's source."""
    if options.importer is not None:
        return options.importer
    shared = {"row_transform": options.row_transform, "executor": options.executor}
    if options.url:
        return RemoteImporter(
            parser, options.url, config, is_jsonp_request=options.is_jsonp_request, **shared
        )
    if options.spreadsheet is not None:
        return SpreadsheetImporter(parser, options.spreadsheet, config, **shared)
    if options.dom_table is not None:
        return LocalImporter(parser, options.dom_table, **shared)
    return LocalImporter(parser, options.inline_data, **shared)
