# ==============================================
# Profile (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes that represent the OUTPUT of schema inference:
#   the semantic role assigned to each uploaded column and the
#   thresholds that control how roles are assigned.
#
# WHY THIS FILE EXISTS:
#   Separating data classes from logic keeps the inferencer clean.
#   ColumnProfile objects are also shown to the user (so they can
#   override a wrong guess) and written into exports.
#
# ENUMS:
# ------
# - ColumnRole(Enum): NUMERIC, TEMPORAL, LATITUDE, LONGITUDE,
#                     GROUP_KEY, UNKNOWN
#
# CLASSES:
# --------
# - ColumnProfile (dataclass)
#     The inferred role for a single column.
#
#     Attributes:
#     -----------
#     - name: str            → Column name as declared by the parser
#     - role: ColumnRole     → Semantic role
#     - confidence: float    → Fraction of sampled values matching the role (0..1)
#     - matched_on: str      → "name", "values" or "none"
#     - reason: str          → Human-readable explanation for the role
#
# - InferenceThresholds (dataclass)
#     - min_role_fraction: float → Share of non-null values that must match a
#                                  role predicate for a value-based match (0.8)
#     - sample_size: int         → Records inspected per batch (500)
#
# ==============================================

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class ColumnRole(Enum):
    """
    Semantic role of an input column.

    - NUMERIC: congestion measurement (value, count, speed, ...)
    - TEMPORAL: observation time
    - LATITUDE / LONGITUDE: geographic position
    - GROUP_KEY: route / road segment identifier
    - UNKNOWN: nothing recognisable
    """
    NUMERIC = "numeric"
    TEMPORAL = "temporal"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    GROUP_KEY = "group_key"
    UNKNOWN = "unknown"


@dataclass
class ColumnProfile:
    """
    Represents the inferred role for a single column.

    Built once per ingestion batch. The UI may override the role
    through a ColumnMapping without re-running inference.
    """

    name: str
    role: ColumnRole
    confidence: float = 0.0
    matched_on: str = "none"  # "name", "values" or "none"
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the profile to a dictionary for export.

        Returns:
            A JSON-serializable dictionary representation
        """
        return {
            "name": self.name,
            "role": self.role.value,
            "confidence": round(self.confidence, 4),
            "matched_on": self.matched_on,
            "reason": self.reason,
        }


@dataclass
class InferenceThresholds:
    """
    Configurable thresholds that control schema inference.
    """

    min_role_fraction: float = 0.8
    """
    Minimum fraction of sampled non-null values that must satisfy a role's
    predicate before the column is given that role from its values alone.
    Default 0.8 = at least 80% of values must parse as dates / numbers / coordinates.
    """

    sample_size: int = 500
    """
    Number of leading records inspected per ingestion batch.
    """
