from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

from .mapping import ColumnMapping
from .type_detector import TypeDetector


UNKNOWN_ROUTE = "Unknown"


@dataclass(frozen=True)
class NormalizedRow:
    route: str
    timestamp: Optional[datetime] = None
    value: Optional[float] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_geo(self) -> bool:
        return self.lat is not None and self.lng is not None

    def to_dict(self) -> dict:
        return {
            "route": self.route,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "value": self.value,
            "lat": self.lat,
            "lng": self.lng,
        }


@dataclass
class NormalizationResult:
    rows: List[NormalizedRow] = field(default_factory=list)
    dropped_count: int = 0
    overflow_count: int = 0

    @property
    def kept_count(self) -> int:
        return len(self.rows)

    def __iter__(self):
        # Allows `rows, dropped = normalizer.normalize(...)`
        return iter((self.rows, self.dropped_count))


class RowNormalizer:
    def __init__(self, type_detector: Optional[TypeDetector] = None, row_cap: Optional[int] = 200_000):
        self.type_detector = type_detector or TypeDetector()
        self.row_cap = row_cap

    def normalize(self, records: Iterable[Mapping[str, Any]], mapping: ColumnMapping) -> NormalizationResult:
        result = NormalizationResult()

        for record in records:
            if self.row_cap is not None and len(result.rows) >= self.row_cap:
                result.overflow_count += 1
                continue

            row = self.normalize_record(record, mapping)
            if row is None:
                result.dropped_count += 1
            else:
                result.rows.append(row)

        return result

    def normalize_record(self, record: Mapping[str, Any], mapping: ColumnMapping) -> Optional[NormalizedRow]:
        if not isinstance(record, Mapping):
            return None

        route = self.type_detector.to_text(self._extract(record, mapping.route_col))
        timestamp = self.type_detector.to_datetime(self._extract(record, mapping.time_col))
        value = self.type_detector.to_number(self._extract(record, mapping.value_col))
        lat = self.type_detector.to_latitude(self._extract(record, mapping.lat_col))
        lng = self.type_detector.to_longitude(self._extract(record, mapping.lng_col))

        parsed = {
            "route_col": route,
            "time_col": timestamp,
            "value_col": value,
            "lat_col": lat,
            "lng_col": lng,
        }
        if all(parsed[key] is None for key in mapping.requested()):
            return None

        return NormalizedRow(
            route=route or UNKNOWN_ROUTE,
            timestamp=timestamp,
            value=value,
            lat=lat,
            lng=lng,
            raw=dict(record),
        )

    def _extract(self, record: Mapping[str, Any], column: Optional[str]) -> Any:
        if column is None:
            return None
        return record.get(column)
