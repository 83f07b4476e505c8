# ==============================================
# Tests for Aggregation Engine
# ==============================================
#
# class TestAggregateBucket     → sum/count, None values, undefined average
# class TestRouteAggregation    → Scenario A, mean equivalence, top routes
# class TestTimeAggregation     → bucket keys, ordering, null timestamps
# class TestIncrementalFolding  → fold in chunks == one-shot aggregation
# ==============================================

import random
from datetime import datetime, timedelta, timezone

import pytest

from trafficlens.aggregation import (
    AggregateBucket,
    RouteAggregator,
    RouteAverage,
    TimeSeriesAggregator,
    aggregate_by_route,
    aggregate_by_time,
    bucket_key,
    route_averages,
    time_series,
    top_routes,
)
from trafficlens.normalization import NormalizedRow


def _row(route, value=None, timestamp=None):
    return NormalizedRow(route=route, value=value, timestamp=timestamp)


class TestAggregateBucket:
    def test_average(self):
        bucket = AggregateBucket(key="R1")
        bucket.add(40.0)
        bucket.add(60.0)

        assert bucket.count == 2
        assert bucket.sum == 100.0
        assert bucket.average == 50.0

    def test_none_is_ignored(self):
        bucket = AggregateBucket(key="R1")
        bucket.add(None)

        assert bucket.count == 0
        assert bucket.average is None


class TestRouteAggregation:
    def test_scenario_a(self):
        rows = [_row("R1", 40.0), _row("R1", 60.0), _row("R2", 10.0)]

        averages = {item.route: item.avg for item in route_averages(aggregate_by_route(rows))}

        assert averages == {"R1": 50.0, "R2": 10.0}

    def test_rows_without_value_still_create_route(self):
        buckets = aggregate_by_route([_row("R1", None), _row("R2", 5.0)])

        assert buckets["R1"].count == 0
        assert buckets["R1"].average is None
        assert buckets["R2"].count == 1

    def test_count_is_number_of_non_null_values(self):
        rows = [_row("R1", 1.0), _row("R1", None), _row("R1", 3.0)]

        bucket = aggregate_by_route(rows)["R1"]

        assert bucket.count == 2
        assert bucket.sum == 4.0

    def test_average_matches_direct_mean(self):
        rng = random.Random(7)
        rows = [
            _row(f"R{rng.randint(1, 12)}", rng.choice([None, rng.uniform(0, 500)]))
            for _ in range(2000)
        ]

        buckets = aggregate_by_route(rows)

        for route, bucket in buckets.items():
            values = [row.value for row in rows if row.route == route and row.value is not None]
            if not values:
                assert bucket.average is None
                continue
            assert bucket.average == pytest.approx(sum(values) / len(values), abs=1e-9)

    def test_top_routes_descending(self):
        averages = [
            RouteAverage("A", 10.0), RouteAverage("B", 30.0),
            RouteAverage("C", None), RouteAverage("D", 30.0), RouteAverage("E", 20.0),
        ]

        result = top_routes(averages, limit=3)

        assert [item.route for item in result] == ["B", "D", "E"]

    def test_top_routes_accepts_pairs(self):
        result = top_routes([("A", 1.0), {"route": "B", "avg": 2.0}], limit=10)
        assert [item.route for item in result] == ["B", "A"]


class TestTimeAggregation:
    @pytest.mark.parametrize("resolution, expected", [
        ("minute", "2024-05-01T08:15"),
        ("hour", "2024-05-01T08:00"),
        ("day", "2024-05-01"),
    ])
    def test_bucket_key(self, resolution, expected):
        assert bucket_key(datetime(2024, 5, 1, 8, 15, 59, 999), resolution) == expected

    def test_aware_timestamps_use_utc(self):
        offset = timezone(timedelta(hours=2))
        assert bucket_key(datetime(2024, 5, 1, 10, 15, tzinfo=offset)) == "2024-05-01T08:15"

    def test_unknown_resolution(self):
        with pytest.raises(ValueError):
            bucket_key(datetime(2024, 5, 1), "week")
        with pytest.raises(ValueError):
            TimeSeriesAggregator("week")

    def test_null_timestamps_are_excluded(self):
        rows = [
            _row("R1", 10.0, datetime(2024, 5, 1, 8, 15, 10)),
            _row("R1", 20.0, datetime(2024, 5, 1, 8, 15, 50)),
            _row("R1", 99.0, None),
        ]

        buckets = aggregate_by_time(rows)

        assert list(buckets) == ["2024-05-01T08:15"]
        assert buckets["2024-05-01T08:15"].average == 15.0

    def test_series_sorted_ascending(self):
        base = datetime(2024, 5, 1, 8, 0)
        rows = [_row("R1", float(i), base + timedelta(minutes=m)) for i, m in enumerate([30, 5, 59, 5, 12])]

        series = time_series(aggregate_by_time(rows))

        keys = [point.key for point in series]
        assert keys == sorted(keys)
        assert keys == ["2024-05-01T08:05", "2024-05-01T08:12", "2024-05-01T08:30", "2024-05-01T08:59"]
        assert series[0].count == 2

    def test_series_across_days_sorts_chronologically(self):
        rows = [
            _row("R1", 1.0, datetime(2024, 5, 2, 0, 1)),
            _row("R1", 1.0, datetime(2024, 4, 30, 23, 59)),
            _row("R1", 1.0, datetime(2024, 5, 1, 12, 0)),
        ]

        series = time_series(aggregate_by_time(rows, "day"))

        assert [point.key for point in series] == ["2024-04-30", "2024-05-01", "2024-05-02"]

    def test_bucket_without_values_has_no_average(self):
        series = time_series(aggregate_by_time([_row("R1", None, datetime(2024, 5, 1, 8, 0))]))

        assert series[0].to_dict() == {"date": "2024-05-01T08:00", "value": None, "count": 0}


class TestIncrementalFolding:
    def test_fold_in_chunks_equals_one_shot(self):
        rng = random.Random(11)
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        rows = [
            _row(f"R{rng.randint(1, 5)}", rng.uniform(0, 100), base + timedelta(minutes=rng.randint(0, 90)))
            for _ in range(300)
        ]

        routes = RouteAggregator()
        times = TimeSeriesAggregator("minute")
        for start in range(0, len(rows), 37):
            chunk = rows[start:start + 37]
            routes.fold(chunk)
            times.fold(chunk)

        expected_routes = route_averages(aggregate_by_route(rows))
        expected_series = time_series(aggregate_by_time(rows))

        assert [(a.route, a.count) for a in routes.averages()] == [(e.route, e.count) for e in expected_routes]
        for actual, expected in zip(routes.averages(), expected_routes):
            assert actual.avg == pytest.approx(expected.avg, abs=1e-9)
        assert [(p.key, p.count) for p in times.series()] == [(p.key, p.count) for p in expected_series]

    def test_clear(self):
        routes = RouteAggregator()
        routes.fold([_row("R1", 1.0)])
        routes.clear()

        assert routes.averages() == []
