# ==============================================
# Parsers
# ==============================================
#
# PURPOSE:
#   Turn uploaded / pasted / downloaded text into a batch of raw
#   records plus the declared field list. Nothing here interprets
#   column meaning; that is the SchemaInferencer's job.
#
# FUNCTIONS:
# ----------
# - parse_delimited(text, delimiter=None) -> ParsedBatch
#     CSV/TSV with a header row, read with pandas. Numbers come back
#     typed (int/float), empty cells as None. Lines with too many
#     fields are skipped and counted instead of failing the batch.
#
# - parse_json(text) -> ParsedBatch
#     JSON array of flat objects. Field list = union of keys in
#     first-seen order; missing keys become None.
#
# - parse_text(text) -> ParsedBatch
#     JSON if the text starts with "[" or "{", delimited otherwise.
#
# - read_file(path) -> ParsedBatch
# - fetch_dataset(url, timeout) -> ParsedBatch   (requests)
#
# ERRORS:
# -------
#   Text that cannot be tokenized at all raises ParseError;
#   download failures raise FetchError.
#
# ==============================================

import io
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from urllib.parse import urlparse

import pandas as pd
import requests

from trafficlens.errors import FetchError, IngestionError, ParseError


DELIMITER_CANDIDATES = (",", "\t", ";", "|")


@dataclass
class ParsedBatch:
    """Raw records and declared fields of one parsed input."""
    records: List[Dict[str, Any]] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    skipped_lines: int = 0
    source: str = "text"


def sniff_delimiter(text: str) -> str:
    """
    Pick the delimiter that occurs most often in the header line.

    Args:
        text: Delimited text

    Returns:
        One of DELIMITER_CANDIDATES (comma when nothing else wins)
    """
    header = next((line for line in text.splitlines() if line.strip()), "")
    counts = {candidate: header.count(candidate) for candidate in DELIMITER_CANDIDATES}
    best = max(DELIMITER_CANDIDATES, key=lambda candidate: counts[candidate])
    return best if counts[best] > 0 else ","


def parse_delimited(text: str, delimiter: Optional[str] = None, source: str = "text") -> ParsedBatch:
    """
    Parse CSV/TSV text with a header row.

    Args:
        text: Delimited text
        delimiter: Force a delimiter instead of sniffing the header
        source: Label used in error messages and reports

    Returns:
        ParsedBatch

    Raises:
        ParseError: Empty input or text pandas cannot tokenize
    """
    if text is None or not text.strip():
        raise ParseError("input is empty", source)

    text = text.lstrip("﻿")
    sep = delimiter or sniff_delimiter(text)
    skipped: List[List[str]] = []

    def _skip_bad_line(bad_line: List[str]) -> None:
        skipped.append(bad_line)
        return None

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            sep=sep,
            engine="python",
            skip_blank_lines=True,
            skipinitialspace=True,
            on_bad_lines=_skip_bad_line,
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError, ValueError) as e:
        raise ParseError(f"could not parse delimited text: {e}", source) from e

    return _frame_to_batch(frame, skipped_lines=len(skipped), source=source)


def _frame_to_batch(frame: pd.DataFrame, skipped_lines: int, source: str) -> ParsedBatch:
    fields = [str(column).strip() for column in frame.columns]
    frame.columns = fields

    # object dtype turns numpy scalars into plain Python values; NaN → None
    clean = frame.astype(object).where(frame.notna(), None)
    records = clean.to_dict(orient="records")

    return ParsedBatch(records=records, fields=fields, skipped_lines=skipped_lines, source=source)


def parse_json(text: Union[str, bytes], source: str = "json") -> ParsedBatch:
    """
    Parse a JSON array of flat objects.

    Args:
        text: JSON text
        source: Label used in error messages and reports

    Returns:
        ParsedBatch; non-object array items are skipped and counted

    Raises:
        ParseError: Invalid JSON, or JSON that is not an array
    """
    if text is None or not str(text).strip():
        raise ParseError("input is empty", source)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e.msg} (line {e.lineno})", source) from e

    if not isinstance(payload, list):
        raise ParseError("JSON must be an array of objects", source)

    objects = [item for item in payload if isinstance(item, dict)]
    skipped = len(payload) - len(objects)
    fields = union_fields(objects)

    records = [{name: item.get(name) for name in fields} for item in objects]
    return ParsedBatch(records=records, fields=fields, skipped_lines=skipped, source=source)


def parse_text(text: str, source: str = "text") -> ParsedBatch:
    """Parse pasted text, sniffing JSON versus delimited content."""
    if text is None or not text.strip():
        raise ParseError("input is empty", source)

    stripped = text.lstrip("﻿").lstrip()
    if stripped.startswith(("[", "{")):
        return parse_json(stripped, source=source)
    return parse_delimited(text, source=source)


def read_file(path: Union[str, Path]) -> ParsedBatch:
    """
    Read a dataset file (.json, .tsv, anything else as CSV).

    Raises:
        IngestionError: The file cannot be read
        ParseError: The content cannot be parsed
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise IngestionError(f"cannot read file: {e}", str(path)) from e

    suffix = path.suffix.lower()
    if suffix == ".json":
        return parse_json(text, source=str(path))
    if suffix == ".tsv":
        return parse_delimited(text, delimiter="\t", source=str(path))
    return parse_delimited(text, source=str(path))


def fetch_dataset(url: str, timeout: float = 10.0) -> ParsedBatch:
    """
    Download a dataset over HTTP and parse it.

    Args:
        url: http(s) URL of a CSV/TSV/JSON dataset
        timeout: Request timeout in seconds

    Returns:
        ParsedBatch

    Raises:
        FetchError: Network error or non-2xx response
        ParseError: The body cannot be parsed
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        raise FetchError(f"failed to fetch dataset: {e}", url) from e

    content_type = response.headers.get("Content-Type", "").lower()
    path = urlparse(url).path.lower()

    if "json" in content_type or path.endswith(".json"):
        return parse_json(response.text, source=url)
    if "tab-separated" in content_type or path.endswith(".tsv"):
        return parse_delimited(response.text, delimiter="\t", source=url)
    return parse_text(response.text, source=url)


def union_fields(records: Iterable[Mapping[str, Any]]) -> List[str]:
    """Keys of all records, in first-seen order."""
    fields: List[str] = []
    seen = set()
    for record in records:
        for key in record:
            if key not in seen:
                seen.add(key)
                fields.append(key)
    return fields
