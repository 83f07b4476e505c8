# ==============================================
# ColumnMapping
# ==============================================
#
# PURPOSE:
#   Names which input column feeds each canonical row field.
#   Produced by the SchemaInferencer (best guess per role) and
#   optionally overridden by the user's manual column selection.
#
#   Fields:
#   -------
#   - route_col  → route / group key        (e.g., "road_segment")
#   - time_col   → observation timestamp    (e.g., "timestamp")
#   - value_col  → congestion measurement   (e.g., "vehicle_count")
#   - lat_col    → latitude                 (e.g., "start_lat")
#   - lng_col    → longitude                (e.g., "start_lng")
#
#   A field set to None means "-- none --": the normalizer fills
#   that part of every row with null / "Unknown".
#
# ==============================================

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from .column_names import ColumnNameNormalizer


MAPPING_KEYS = ("route_col", "time_col", "value_col", "lat_col", "lng_col")


@dataclass(frozen=True)
class ColumnMapping:
    """Which raw column feeds each NormalizedRow field."""

    route_col: Optional[str] = None
    time_col: Optional[str] = None
    value_col: Optional[str] = None
    lat_col: Optional[str] = None
    lng_col: Optional[str] = None

    def requested(self) -> Dict[str, str]:
        """
        Mapping entries that actually name a column.

        Returns:
            Dict of field key → column name, skipping "none" entries
        """
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def resolve(self, override: Optional[Mapping[str, Any]] = None) -> "ColumnMapping":
        """
        Apply a manual column selection on top of this mapping.

        Keys may be snake_case ("route_col") or camelCase ("routeCol").
        Absent keys keep the current column; keys given as None or ""
        select "none".

        Args:
            override: Partial mapping from the user

        Returns:
            A new ColumnMapping

        Raises:
            ValueError: If a key does not name a mapping field
        """
        if not override:
            return self

        normalizer = ColumnNameNormalizer()
        changes: Dict[str, Optional[str]] = {}
        for raw_key, column in override.items():
            key = normalizer.normalize(raw_key)
            if key not in MAPPING_KEYS:
                raise ValueError(
                    f"Unknown mapping key '{raw_key}'. Expected one of {list(MAPPING_KEYS)}"
                )
            changes[key] = _clean_column(column)

        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {key: getattr(self, key) for key in MAPPING_KEYS}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "ColumnMapping":
        return cls().resolve(data or {})


def _clean_column(column: Any) -> Optional[str]:
    if column is None:
        return None
    column = str(column)
    return column if column.strip() else None
