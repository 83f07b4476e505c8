# ==============================================
# Buckets (Data Classes)
# ==============================================
#
# - AggregateBucket → running sum/count for one route or time bucket
# - RouteAverage    → {route, avg, count} handed to classification/ranking
# - SeriesPoint     → one point of the time-series view
#
# Average = sum / count when count > 0, otherwise None. A bucket
# only ever grows while rows are folded in.
#
# ==============================================

import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass
class AggregateBucket:
    """Running sum/count for one group key."""

    key: str
    sum: float = 0.0
    count: int = 0

    def add(self, value: Optional[float]) -> None:
        """Fold one value in; None is ignored (the bucket still exists)."""
        if value is None:
            return
        self.sum += value
        self.count += 1

    @property
    def average(self) -> Optional[float]:
        if self.count <= 0:
            return None
        return self.sum / self.count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "sum": self.sum,
            "count": self.count,
            "avg": self.average,
        }


@dataclass(frozen=True)
class RouteAverage:
    """Average congestion metric for one route."""

    route: str
    avg: Optional[float] = None
    count: int = 0

    @property
    def has_average(self) -> bool:
        return isinstance(self.avg, (int, float)) and not isinstance(self.avg, bool) \
            and math.isfinite(self.avg)

    @classmethod
    def coerce(cls, item: Any) -> "RouteAverage":
        """
        Accept a RouteAverage, a {"route", "avg"} mapping or a (route, avg) pair.
        """
        if isinstance(item, cls):
            return item
        if isinstance(item, Mapping):
            return cls(
                route=str(item["route"]),
                avg=item.get("avg"),
                count=item.get("count", 0) or 0,
            )
        route, avg = item
        return cls(route=str(route), avg=avg)

    def to_dict(self) -> Dict[str, Any]:
        return {"route": self.route, "avg": self.avg, "count": self.count}


@dataclass(frozen=True)
class SeriesPoint:
    """One time bucket of the time-series view."""

    key: str
    avg: Optional[float] = None
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.key, "value": self.avg, "count": self.count}
