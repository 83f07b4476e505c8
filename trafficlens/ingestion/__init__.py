# ==============================================
# TOPIC 1: INGESTION
# ==============================================
#
# This package turns external text (uploaded CSV/TSV files,
# pasted JSON arrays, downloaded datasets) into raw records.
#
# Modules:
# --------
# - parsers.py  → ParsedBatch + CSV/TSV/JSON parsing and HTTP fetch
#
# ==============================================

from .parsers import (
    ParsedBatch,
    fetch_dataset,
    parse_delimited,
    parse_json,
    parse_text,
    read_file,
    sniff_delimiter,
    union_fields,
)

__all__ = [
    "ParsedBatch",
    "fetch_dataset",
    "parse_delimited",
    "parse_json",
    "parse_text",
    "read_file",
    "sniff_delimiter",
    "union_fields",
]
