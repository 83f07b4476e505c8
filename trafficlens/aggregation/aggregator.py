# ==============================================
# Aggregation Engine
# ==============================================
#
# PURPOSE:
#   Fold NormalizedRows into two independent views:
#     - by route:       route → AggregateBucket
#     - by time bucket: truncated timestamp → AggregateBucket
#
# CLASSES:
# --------
# - RouteAggregator
#     fold(rows) folds incrementally; every row creates its route
#     bucket, only non-null values reach sum/count.
#
# - TimeSeriesAggregator
#     fold(rows) groups by the timestamp truncated to the configured
#     resolution. Rows without a timestamp are skipped entirely.
#
# FUNCTIONS:
# ----------
# - aggregate_by_route(rows) / aggregate_by_time(rows, resolution)
#     One-shot versions over a full row set.
# - route_averages(buckets) → [RouteAverage]  (bucket insertion order)
# - time_series(buckets)    → [SeriesPoint]   (ascending by key)
# - top_routes(averages, limit) → highest averages first
#
# BUCKET KEYS:
# ------------
#   minute → "2024-05-01T08:15"
#   hour   → "2024-05-01T08:00"
#   day    → "2024-05-01"
#   Keys sort lexicographically in chronological order. Timezone-aware
#   timestamps are converted to UTC first.
#
# ==============================================

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Sequence

from trafficlens.normalization.row_normalizer import NormalizedRow
from .buckets import AggregateBucket, RouteAverage, SeriesPoint


BUCKET_FORMATS = {
    "minute": "%Y-%m-%dT%H:%M",
    "hour": "%Y-%m-%dT%H:00",
    "day": "%Y-%m-%d",
}


def bucket_key(timestamp: datetime, resolution: str = "minute") -> str:
    """
    Truncate a timestamp to a sortable bucket key.

    Args:
        timestamp: Observation time
        resolution: "minute", "hour" or "day"

    Returns:
        Bucket key string
    """
    if resolution not in BUCKET_FORMATS:
        raise ValueError(
            f"Unsupported time bucket '{resolution}'. Supported: {sorted(BUCKET_FORMATS)}"
        )
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.strftime(BUCKET_FORMATS[resolution])


class RouteAggregator:
    """Route → AggregateBucket, folded incrementally."""

    def __init__(self):
        self.buckets: Dict[str, AggregateBucket] = {}

    def fold(self, rows: Iterable[NormalizedRow]) -> None:
        for row in rows:
            bucket = self.buckets.get(row.route)
            if bucket is None:
                bucket = self.buckets[row.route] = AggregateBucket(key=row.route)
            bucket.add(row.value)

    def clear(self) -> None:
        self.buckets = {}

    def averages(self) -> List[RouteAverage]:
        return route_averages(self.buckets)


class TimeSeriesAggregator:
    """Time bucket → AggregateBucket, folded incrementally."""

    def __init__(self, resolution: str = "minute"):
        if resolution not in BUCKET_FORMATS:
            raise ValueError(
                f"Unsupported time bucket '{resolution}'. Supported: {sorted(BUCKET_FORMATS)}"
            )
        self.resolution = resolution
        self.buckets: Dict[str, AggregateBucket] = {}

    def fold(self, rows: Iterable[NormalizedRow]) -> None:
        for row in rows:
            if row.timestamp is None:
                continue
            key = bucket_key(row.timestamp, self.resolution)
            bucket = self.buckets.get(key)
            if bucket is None:
                bucket = self.buckets[key] = AggregateBucket(key=key)
            bucket.add(row.value)

    def clear(self) -> None:
        self.buckets = {}

    def series(self) -> List[SeriesPoint]:
        return time_series(self.buckets)


def aggregate_by_route(rows: Iterable[NormalizedRow]) -> Dict[str, AggregateBucket]:
    aggregator = RouteAggregator()
    aggregator.fold(rows)
    return aggregator.buckets


def aggregate_by_time(
    rows: Iterable[NormalizedRow],
    resolution: str = "minute"
) -> Dict[str, AggregateBucket]:
    aggregator = TimeSeriesAggregator(resolution)
    aggregator.fold(rows)
    return aggregator.buckets


def route_averages(buckets: Dict[str, AggregateBucket]) -> List[RouteAverage]:
    return [
        RouteAverage(route=key, avg=bucket.average, count=bucket.count)
        for key, bucket in buckets.items()
    ]


def time_series(buckets: Dict[str, AggregateBucket]) -> List[SeriesPoint]:
    return [
        SeriesPoint(key=key, avg=buckets[key].average, count=buckets[key].count)
        for key in sorted(buckets)
    ]


def top_routes(averages: Sequence[RouteAverage], limit: int = 10) -> List[RouteAverage]:
    """
    Routes with a defined average, highest first (ties by route name).
    """
    defined = [RouteAverage.coerce(item) for item in averages]
    defined = [item for item in defined if item.has_average]
    defined.sort(key=lambda item: (-item.avg, item.route))
    return defined[:max(limit, 0)]
