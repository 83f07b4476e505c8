# ==============================================
# TOPIC 2: SCHEMA INFERENCE
# ==============================================
#
# This package observes a sample of an uploaded batch and decides
# the semantic role of every column (route, time, value, lat, lng).
#
# Two-step process:
#   Step 1 (Analysis):   Observe sampled values → ColumnStats per column
#   Step 2 (Inference):  Apply name/value heuristics → ColumnProfile
#
# Modules:
# --------
# - column_stats.py       → Data class holding evidence for one column
# - column_analyzer.py    → Observe records, accumulate stats per column
# - schema_inferencer.py  → Apply heuristics, output profiles + default mapping
# - profile.py            → ColumnRole, ColumnProfile, InferenceThresholds
#
# ==============================================

from .profile import ColumnRole, ColumnProfile, InferenceThresholds
from .column_stats import ColumnStats
from .column_analyzer import ColumnAnalyzer
from .schema_inferencer import SchemaInferencer

__all__ = [
    "ColumnRole",
    "ColumnProfile",
    "InferenceThresholds",
    "ColumnStats",
    "ColumnAnalyzer",
    "SchemaInferencer",
]
