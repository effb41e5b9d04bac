"""HTML table extraction.

This module reads the first ``<table>`` of an HTML document into a
header row and body rows of cell text.
"""

from __future__ import annotations

from html.parser import HTMLParser

from core.errors import TabulaIngestError


class _TableCollector(HTMLParser):
    """Collect cell text of the first table, tracking header cells."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.rows: list[list[str]] = []
        self.header_row: list[str] | None = None
        self._table_depth = 0
        self._finished = False
        self._row: list[str] | None = None
        self._row_is_header = False
        self._cell: list[str] | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self._finished:
            return
        if tag == "table":
            self._table_depth += 1
        elif self._table_depth == 1 and tag == "tr":
            self._row = []
            self._row_is_header = True
        elif self._row is not None and tag in ("td", "th"):
            self._cell = []
            if tag == "td":
                self._row_is_header = False

    def handle_endtag(self, tag: str) -> None:
        if self._finished:
            return
        if tag == "table":
            self._table_depth -= 1
            self._finished = self._table_depth == 0
        elif tag in ("td", "th") and self._cell is not None and self._row is not None:
            self._row.append(" ".join("".join(self._cell).split()))
            self._cell = None
        elif tag == "tr" and self._row is not None:
            if self._row_is_header and self.header_row is None and not self.rows:
                self.header_row = self._row
            elif self._row:
                self.rows.append(self._row)
            self._row = None

    def handle_data(self, data: str) -> None:
        if self._cell is not None:
            self._cell.append(data)


def read_html_table(markup: str) -> tuple[list[str], list[list[str]]]:
    """Extract the header and body rows of the first table in markup.

    When the table has no ``<th>`` row, its first row is the header.

    Args:
        markup: HTML text containing a ``<table>``.

    Returns:
        Header names and body rows.

    Raises:
        TabulaIngestError: If no table or no header is found.
    """
    collector = _TableCollector()
    collector.feed(markup)
    collector.close()
    header = collector.header_row
    rows = collector.rows
    if header is None and rows:
        header, rows = rows[0], rows[1:]
    if not header:
        raise TabulaIngestError(
            "No HTML table with a header row was found. Provide markup containing a <table>."
        )
    return header, rows
