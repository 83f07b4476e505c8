# ==============================================
# Ingestion Errors
# ==============================================
#
# Only whole-ingestion failures are exceptions. Row-level coercion
# failures, size overflow and empty aggregates are reported through
# counters on the IngestionReport instead.
#
#   IngestionError          → base, carries a human-readable reason
#   ├── ParseError          → text could not be tokenized at all
#   └── FetchError          → remote dataset could not be downloaded
#
# ==============================================

from typing import Optional


class IngestionError(Exception):
    """An ingestion attempt failed; no dataset was installed."""

    def __init__(self, reason: str, source: Optional[str] = None):
        self.reason = reason
        self.source = source
        message = f"{source}: {reason}" if source else reason
        super().__init__(message)


class ParseError(IngestionError):
    """The upstream text could not be parsed into records."""


class FetchError(IngestionError):
    """The dataset URL could not be fetched."""
