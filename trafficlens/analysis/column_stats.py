# ==============================================
# ColumnStats
# ==============================================
#
# PURPOSE:
#   Data class that holds the observed evidence for a single column
#   over the inference sample. This is what the SchemaInferencer
#   reads when a column's name gives no hint of its role.
#
# CLASS: ColumnStats (dataclass)
# ------------------------------
#   Attributes:
#   -----------
#   - name: str                     → Column name
#   - presence_count: int           → Sampled records (missing keys count as null)
#   - null_count: int               → Null / empty values
#   - type_counts: dict[str, int]   → {"int": 45, "str": 3, "null": 2}
#   - numeric_count: int            → Values that coerce to a finite number
#   - temporal_count: int           → Values that parse as a date/time
#   - latitude_count: int           → Numbers within -90..90
#   - longitude_count: int          → Numbers within -180..180
#   - text_count: int               → Values usable as a route key
#   - sample_values: list           → Small list of sample values (for display)
#
#   Computed Properties:
#   --------------------
#   - non_null_count -> int
#   - numeric_fraction / temporal_fraction / latitude_fraction /
#     longitude_fraction / text_fraction -> float
#       Matching values over non-null values (0.0 when all null).
#   - dominant_type -> str | None
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from trafficlens.normalization.type_detector import TypeDetector


@dataclass
class ColumnStats:
    """
    Holds observed statistics for a single column across the sample.
    """

    name: str

    # --- Counters ---
    presence_count: int = 0
    null_count: int = 0
    type_counts: Dict[str, int] = field(default_factory=dict)

    # --- Role predicates ---
    numeric_count: int = 0
    temporal_count: int = 0
    latitude_count: int = 0
    longitude_count: int = 0
    text_count: int = 0

    # --- Inspection ---
    sample_values: List[Any] = field(default_factory=list)
    max_samples: int = 5

    # ======================================
    # Update logic
    # ======================================
    def update(self, value: Any, type_detector: TypeDetector) -> None:
        """
        Update statistics with one sampled value.

        Args:
            value: Raw cell value (None when the key was missing)
            type_detector: Coercion helper shared with the normalizer
        """
        self.presence_count += 1

        detected_type = type_detector.detect(value)
        self.type_counts[detected_type] = self.type_counts.get(detected_type, 0) + 1

        if detected_type == "null":
            self.null_count += 1
            return

        if type_detector.to_number(value) is not None:
            self.numeric_count += 1
        if type_detector.to_latitude(value) is not None:
            self.latitude_count += 1
        if type_detector.to_longitude(value) is not None:
            self.longitude_count += 1
        if type_detector.to_datetime(value) is not None:
            self.temporal_count += 1
        if detected_type not in ("array", "object") and type_detector.to_text(value) is not None:
            self.text_count += 1

        if len(self.sample_values) < self.max_samples:
            self.sample_values.append(value)

    # ======================================
    # Computed properties
    # ======================================
    @property
    def non_null_count(self) -> int:
        return self.presence_count - self.null_count

    def _fraction(self, count: int) -> float:
        if self.non_null_count <= 0:
            return 0.0
        return count / self.non_null_count

    @property
    def numeric_fraction(self) -> float:
        return self._fraction(self.numeric_count)

    @property
    def temporal_fraction(self) -> float:
        return self._fraction(self.temporal_count)

    @property
    def latitude_fraction(self) -> float:
        return self._fraction(self.latitude_count)

    @property
    def longitude_fraction(self) -> float:
        return self._fraction(self.longitude_count)

    @property
    def text_fraction(self) -> float:
        return self._fraction(self.text_count)

    @property
    def dominant_type(self) -> Optional[str]:
        """
        Most frequently observed non-null type, or None if the column is empty.
        """
        observed = {k: v for k, v in self.type_counts.items() if k != "null"}
        if not observed:
            return None
        return max(observed, key=observed.get)

    # ======================================
    # Serialization
    # ======================================
    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "presence_count": self.presence_count,
            "null_count": self.null_count,
            "type_counts": dict(self.type_counts),
            "dominant_type": self.dominant_type,
            "numeric_fraction": round(self.numeric_fraction, 4),
            "temporal_fraction": round(self.temporal_fraction, 4),
            "sample_values": [str(v) for v in self.sample_values],
        }
