"""Source importers for dataset fetching.

This module loads raw payloads from inline objects, HTML markup, local
files, HTTP(S) URLs, S3 objects and published spreadsheets, then hands
them to a parser. Every importer returns a future of parsed data.
"""

from __future__ import annotations

from concurrent.futures import Executor, Future
import json
from pathlib import Path
import re
from typing import Any, Callable

import httpx

from core.config import TabulaConfig
from core.constants import SPREADSHEET_EXPORT_URL
from core.errors import TabulaDependencyError, TabulaIngestError
from core.logging_config import get_logger
from core.s3_uri import is_s3_uri, parse_s3_uri
from core.types import ParsedData, SpreadsheetSource
from ingest.parsers import Parser

_LOGGER = get_logger(__name__)

_JSONP_PATTERN = re.compile(r"^\s*[\w$.]+\s*\((.*)\)\s*;?\s*$", re.DOTALL)


class Importer:
    """Base importer: read a payload, transform it, parse it."""

    def __init__(
        self,
        parser: Parser,
        row_transform: Callable[[Any], Any] | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Create an importer.

        Args:
            parser: Parser applied to the prepared payload.
            row_transform: Optional function applied before parsing.
            executor: Optional executor running the load off the calling thread.
        """
        self._parser = parser
        self._row_transform = row_transform
        self._executor = executor

    @property
    def source_label(self) -> str:
        """Return a short description of the source for logs."""
        return type(self).__name__

    def fetch(self) -> Future:
        """Load and parse the source.

        Returns:
            Future resolving to ``ParsedData`` or failing with the load error.
        """
        if self._executor is not None:
            return self._executor.submit(self.load)
        future: Future = Future()
        try:
            future.set_result(self.load())
        except Exception as error:
            future.set_exception(error)
        return future

    def load(self) -> ParsedData:
        """Load and parse synchronously.

        Raises:
            TabulaIngestError: If reading, transforming or parsing fails.
        """
        payload = self._prepare(self._read())
        if self._row_transform is not None:
            try:
                payload = self._row_transform(payload)
            except Exception as error:
                raise TabulaIngestError(
                    f"row_transform failed for {self.source_label}: {error}."
                ) from error
        parsed = self._parser.parse(payload)
        _LOGGER.debug("source_parsed", source=self.source_label, row_count=parsed.row_count)
        return parsed

    def _read(self) -> Any:
        raise NotImplementedError

    def _prepare(self, payload: Any) -> Any:
        """Decode JSON text for parsers that consume structured data."""
        if self._parser.expects_text or not isinstance(payload, (str, bytes)):
            return payload
        return decode_json(payload, self.source_label)


class LocalImporter(Importer):
    """Import data that is already in memory."""

    def __init__(self, parser: Parser, data: Any, **kwargs: Any) -> None:
        super().__init__(parser, **kwargs)
        self._data = data

    @property
    def source_label(self) -> str:
        return "inline data"

    def _read(self) -> Any:
        if self._data is None:
            raise TabulaIngestError(
                "No data source configured. Pass url, inline_data, dom_table or spreadsheet."
            )
        return self._data


class RemoteImporter(Importer):
    """Import text from an HTTP(S) URL, an S3 object or a local file."""

    def __init__(
        self,
        parser: Parser,
        url: str,
        config: TabulaConfig,
        is_jsonp_request: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(parser, **kwargs)
        self._url = url
        self._config = config
        self._is_jsonp_request = is_jsonp_request

    @property
    def source_label(self) -> str:
        return self._url

    def _read(self) -> str:
        if is_s3_uri(self._url):
            text = _read_s3_text(self._url, self._config)
        elif self._url.startswith(("http://", "https://")):
            text = _read_http_text(self._url, self._config)
        else:
            text = _read_file_text(Path(self._url.removeprefix("file://")).expanduser())
        if self._is_jsonp_request:
            text = unwrap_jsonp(text, self._url)
        return text


class SpreadsheetImporter(RemoteImporter):
    """Import a published spreadsheet through its CSV export URL."""

    def __init__(self, parser: Parser, source: SpreadsheetSource, config: TabulaConfig, **kwargs: Any) -> None:
        url = SPREADSHEET_EXPORT_URL.format(key=source.key, worksheet=source.worksheet)
        super().__init__(parser, url, config, **kwargs)


def decode_json(payload: str | bytes, source_label: str) -> Any:
    """Decode JSON text from a source.

    Raises:
        TabulaIngestError: If the text is not valid JSON.
    """
    try:
        return json.loads(payload)
    except json.JSONDecodeError as error:
        raise TabulaIngestError(
            f"Failed to parse JSON from {source_label}: {error.msg} at line {error.lineno}. "
            "Fix the JSON syntax or configure a delimiter."
        ) from error


def unwrap_jsonp(text: str, source_label: str) -> str:
    """Strip a ``callback(...)`` wrapper from a JSONP response.

    Raises:
        TabulaIngestError: If the text is not wrapped in a callback.
    """
    match = _JSONP_PATTERN.match(text)
    if match is None:
        raise TabulaIngestError(
            f"Response from {source_label} is not JSONP. Disable is_jsonp_request and retry."
        )
    return match.group(1)


def _read_http_text(url: str, config: TabulaConfig) -> str:
    try:
        with httpx.Client(timeout=config.http_timeout, follow_redirects=True) as client:
            response = client.get(url)
            response.raise_for_status()
            return response.text
    except httpx.HTTPStatusError as error:
        raise TabulaIngestError(
            f"Failed to fetch {url}: HTTP {error.response.status_code}. Check the URL and retry."
        ) from error
    except httpx.HTTPError as error:
        raise TabulaIngestError(f"Failed to fetch {url}: {error}. Check connectivity and retry.") from error


def _read_file_text(file_path: Path) -> str:
    if not file_path.is_file():
        raise TabulaIngestError(
            f"Failed to read source at {file_path}: file does not exist. Provide an existing file."
        )
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise TabulaIngestError(f"Failed to read source at {file_path}: {error}.") from error


def _read_s3_text(uri: str, config: TabulaConfig) -> str:
    location = parse_s3_uri(uri)
    s3_client = _create_s3_client(config)
    try:
        body = s3_client.get_object(Bucket=location.bucket, Key=location.key)["Body"].read()
    except Exception as error:
        raise TabulaIngestError(f"Failed to download {uri}: {error}.") from error
    return body.decode("utf-8")


def _create_s3_client(config: TabulaConfig) -> Any:
    """Create a boto3 S3 client.

    Raises:
        TabulaDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise TabulaDependencyError(
            "S3 support requires boto3, but it is not installed. "
            "Install boto3 to fetch s3:// sources."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3")
