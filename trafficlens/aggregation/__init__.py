# ==============================================
# TOPIC 4: AGGREGATION
# ==============================================
#
# This package folds normalized rows into the route view and the
# time-series view. Both views can be rebuilt from the row set at
# any time; the aggregator classes also fold incrementally.
#
# Modules:
# --------
# - buckets.py     → AggregateBucket, RouteAverage, SeriesPoint
# - aggregator.py  → RouteAggregator, TimeSeriesAggregator + helpers
#
# ==============================================

from .buckets import AggregateBucket, RouteAverage, SeriesPoint
from .aggregator import (
    BUCKET_FORMATS,
    RouteAggregator,
    TimeSeriesAggregator,
    aggregate_by_route,
    aggregate_by_time,
    bucket_key,
    route_averages,
    time_series,
    top_routes,
)

__all__ = [
    "AggregateBucket",
    "RouteAverage",
    "SeriesPoint",
    "BUCKET_FORMATS",
    "RouteAggregator",
    "TimeSeriesAggregator",
    "aggregate_by_route",
    "aggregate_by_time",
    "bucket_key",
    "route_averages",
    "time_series",
    "top_routes",
]
