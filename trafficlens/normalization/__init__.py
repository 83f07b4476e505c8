# ==============================================
# TOPIC 3: NORMALIZATION
# ==============================================
#
# This package turns heterogeneous raw records into the
# canonical {route, timestamp, value, lat, lng} row shape
# BEFORE anything is aggregated. All "guess the type"
# coercion lives here and nowhere downstream.
#
# Modules:
# --------
# - type_detector.py   → Coerce untyped scalars (numbers, dates, geo, text)
# - column_names.py    → Canonical snake_case headers + token matching
# - mapping.py         → ColumnMapping (which column feeds which field)
# - row_normalizer.py  → RawRecord → NormalizedRow with drop counters
#
# ==============================================

from .type_detector import TypeDetector
from .column_names import ColumnNameNormalizer
from .mapping import ColumnMapping, MAPPING_KEYS
from .row_normalizer import (
    RowNormalizer,
    NormalizedRow,
    NormalizationResult,
    UNKNOWN_ROUTE,
)

__all__ = [
    "TypeDetector",
    "ColumnNameNormalizer",
    "ColumnMapping",
    "MAPPING_KEYS",
    "RowNormalizer",
    "NormalizedRow",
    "NormalizationResult",
    "UNKNOWN_ROUTE",
]
