# ==============================================
# Tests for TrafficSession
# ==============================================
#
# class TestIngestion          → full pipeline over CSV / JSON / records
# class TestViews              → route stats, series, predictions, geo points
# class TestDatasetLifecycle   → replacement (Scenario D), clear, parse failure
# class TestCancellation       → superseded tickets are discarded
# class TestColumnSelection    → manual mapping without re-inference
# class TestExport             → payload layout and round trip
# ==============================================

from dataclasses import replace

import pytest
import requests

from trafficlens.config import AnalyticsConfig, NormalizationConfig
from trafficlens.errors import ParseError
from trafficlens.persistence import ExportStore
from trafficlens.prediction import CongestionLabel
from trafficlens.session import TrafficSession


class TestIngestion:
    def test_ingest_csv_report(self, session, traffic_csv):
        report = session.ingest_csv(traffic_csv)

        assert report.total_records == 4
        assert report.row_count == 4
        assert report.dropped_count == 0
        assert report.overflow_count == 0
        assert report.route_count == 3
        assert report.qualifying_route_count == 2
        assert report.mapping.to_dict() == {
            "route_col": "route", "time_col": "timestamp", "value_col": "value",
            "lat_col": "lat", "lng_col": "lng",
        }
        assert [profile.name for profile in report.profiles] == report.fields

    def test_ingest_json(self, session):
        report = session.ingest_json('[{"route": "R1", "value": 40}, {"route": "R2", "value": 10}]')

        assert report.row_count == 2
        assert report.source == "json"

    def test_ingest_text_sniffs_format(self, session, traffic_csv):
        assert session.ingest_text(traffic_csv).row_count == 4
        assert session.ingest_text('[{"route": "R1", "value": 1}]').row_count == 1

    def test_ingest_file(self, session, traffic_csv_file):
        report = session.ingest_file(traffic_csv_file)

        assert report.source == str(traffic_csv_file)
        assert report.row_count == 4

    def test_ingest_url(self, session, monkeypatch, fake_response, traffic_csv):
        monkeypatch.setattr(requests, "get", lambda url, timeout: fake_response(traffic_csv))

        report = session.ingest_url("https://example.org/traffic.csv")

        assert report.row_count == 4

    def test_mapping_override_on_ingest(self, session, traffic_csv):
        report = session.ingest_csv(traffic_csv, mapping={"latCol": None})

        assert report.mapping.lat_col is None
        assert session.geo_points() == []

    def test_report_to_dict(self, session, scenario_a_records):
        data = session.ingest_records(scenario_a_records).to_dict()

        assert data["row_count"] == 3
        assert data["mapping"]["route_col"] == "route"
        assert data["profiles"][0]["role"] == "group_key"

    def test_row_cap(self, quiet_config, scenario_a_records):
        config = replace(quiet_config, normalization=NormalizationConfig(row_cap=2))
        session = TrafficSession(config)

        report = session.ingest_records(scenario_a_records)

        assert report.row_count == 2
        assert report.overflow_count == 1

    def test_skipped_lines_reported(self, session):
        report = session.ingest_csv("route,value\nR1,1\nR2,2,extra\nR3,3\n")

        assert report.skipped_lines == 1
        assert report.row_count == 2


class TestViews:
    def test_scenario_a(self, session, scenario_a_records):
        session.ingest_records(scenario_a_records)

        averages = {item.route: item.avg for item in session.route_stats()}

        assert averages == {"R1": 50.0, "R2": 10.0}

    def test_time_series(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        series = [point.to_dict() for point in session.time_series()]

        assert series == [
            {"date": "2024-05-01T08:15", "value": 50.0, "count": 2},
            {"date": "2024-05-01T08:16", "value": 10.0, "count": 1},
            {"date": "2024-05-01T09:00", "value": None, "count": 0},
        ]

    def test_hourly_buckets(self, quiet_config, traffic_csv):
        config = replace(quiet_config, analytics=AnalyticsConfig(time_bucket="hour"))
        session = TrafficSession(config)
        session.ingest_csv(traffic_csv)

        assert [point.key for point in session.time_series()] == ["2024-05-01T08:00", "2024-05-01T09:00"]

    def test_predictions_and_distribution(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        labels = {result.route: result.label for result in session.predictions()}

        assert labels == {
            "R1": CongestionLabel.HEAVY,
            "R2": CongestionLabel.LIGHT,
            "R3": CongestionLabel.NO_DATA,
        }
        assert session.prediction_distribution() == {"Heavy": 1, "Moderate": 0, "Light": 1, "NoData": 1}

    def test_recommendations(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        assert session.recommendations() == ["R2", "R1"]
        assert session.recommendations(top_n=1) == ["R2"]
        assert session.recommendation_details() == [
            {"route": "R2", "avg": 10.0, "label": "Light"},
            {"route": "R1", "avg": 50.0, "label": "Heavy"},
        ]

    def test_top_routes(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        assert [item.route for item in session.top_routes()] == ["R1", "R2"]
        assert [item.route for item in session.top_routes(limit=1)] == ["R1"]

    def test_scenario_e_out_of_range_latitude(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        r2_rows = [row for row in session.rows if row.route == "R2"]
        assert r2_rows[0].lat is None
        assert "R2" not in {row.route for row in session.geo_points()}
        assert {item.route: item.avg for item in session.route_stats()}["R2"] == 10.0
        assert any(point.key == "2024-05-01T08:16" for point in session.time_series())

    def test_geo_points_limit(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        assert len(session.geo_points()) == 3
        assert len(session.geo_points(limit=2)) == 2

    def test_no_value_column(self, session):
        session.ingest_records([{"route": "R1"}, {"route": "R2"}])

        assert session.recommendations() == []
        assert all(result.label == CongestionLabel.NO_DATA for result in session.predictions())
        assert session.last_report.qualifying_route_count == 0

    def test_empty_session_views(self, session):
        assert session.route_stats() == []
        assert session.time_series() == []
        assert session.predictions() == []
        assert session.geo_points() == []
        assert session.recommendations() == []
        assert session.column_profiles() == []
        assert session.prediction_distribution() == {"Heavy": 0, "Moderate": 0, "Light": 0, "NoData": 0}
        assert session.get_status()["has_data"] is False

    def test_status(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        status = session.get_status()

        assert status["has_data"] is True
        assert status["row_count"] == 4
        assert status["route_count"] == 3
        assert status["geo_row_count"] == 3
        assert status["time_bucket"] == "minute"


class TestDatasetLifecycle:
    def test_scenario_d_replacement(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)
        session.ingest_records([{"route": "Z9", "value": 7, "timestamp": "2024-06-01T00:00:00Z"}])

        assert [item.route for item in session.route_stats()] == ["Z9"]
        assert [point.key for point in session.time_series()] == ["2024-06-01T00:00"]
        assert [result.route for result in session.predictions()] == ["Z9"]
        assert session.recommendations() == ["Z9"]
        assert session.geo_points() == []
        assert len(session.rows) == 1

    def test_clear(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)
        session.clear()

        assert not session.has_data
        assert session.route_stats() == []
        assert session.time_series() == []
        assert session.last_report is None

    def test_parse_failure_keeps_previous_dataset(self, session, scenario_a_records):
        session.ingest_records(scenario_a_records)

        with pytest.raises(ParseError):
            session.ingest_json("{not json")

        assert {item.route for item in session.route_stats()} == {"R1", "R2"}

    def test_unknown_override_column_keeps_previous_dataset(self, session, scenario_a_records):
        session.ingest_records(scenario_a_records)

        with pytest.raises(ValueError):
            session.ingest_records([{"route": "X", "value": 1}], mapping={"value_col": "nope"})

        assert {item.route for item in session.route_stats()} == {"R1", "R2"}


class TestCancellation:
    def test_superseded_ticket_is_discarded(self, session):
        first = session.begin_ingestion()
        second = session.begin_ingestion()

        assert session.complete_ingestion(first, [{"route": "OLD", "value": 1}]) is None
        report = session.complete_ingestion(second, [{"route": "NEW", "value": 2}])

        assert report is not None
        assert [item.route for item in session.route_stats()] == ["NEW"]

    def test_late_completion_does_not_overwrite_newer_dataset(self, session):
        first = session.begin_ingestion()
        second = session.begin_ingestion()
        session.complete_ingestion(second, [{"route": "NEW", "value": 2}])

        assert session.complete_ingestion(first, [{"route": "OLD", "value": 1}]) is None
        assert [item.route for item in session.route_stats()] == ["NEW"]

    def test_pending_ingestion_keeps_current_dataset(self, session, scenario_a_records):
        session.ingest_records(scenario_a_records)
        session.begin_ingestion()

        assert {item.route for item in session.route_stats()} == {"R1", "R2"}

    def test_clear_supersedes_pending_ticket(self, session):
        ticket = session.begin_ingestion()
        session.clear()

        assert session.complete_ingestion(ticket, [{"route": "R1", "value": 1}]) is None
        assert not session.has_data


class TestColumnSelection:
    RECORDS = [
        {"route": "A", "segment": "S1", "value": 10, "speed": 100},
        {"route": "A", "segment": "S2", "value": 20, "speed": 300},
        {"route": "B", "segment": "S1", "value": 30, "speed": 500},
    ]

    def test_defaults(self, session):
        report = session.ingest_records(self.RECORDS)

        assert report.mapping.route_col == "route"
        assert report.mapping.value_col == "value"

    def test_select_value_column(self, session):
        session.ingest_records(self.RECORDS)
        profiles_before = session.column_profiles()

        session.select_columns(value_col="speed")

        assert {item.route: item.avg for item in session.route_stats()} == {"A": 200.0, "B": 500.0}
        assert session.column_profiles() == profiles_before

    def test_select_with_camel_case_mapping(self, session):
        session.ingest_records(self.RECORDS)

        session.select_columns({"routeCol": "segment"})

        assert {item.route: item.avg for item in session.route_stats()} == {"S1": 20.0, "S2": 20.0}

    def test_deselect_route(self, session):
        session.ingest_records(self.RECORDS)

        report = session.select_columns(route_col=None)

        assert [item.route for item in session.route_stats()] == ["Unknown"]
        assert report.mapping.route_col is None

    def test_unknown_column(self, session):
        session.ingest_records(self.RECORDS)

        with pytest.raises(ValueError):
            session.select_columns(value_col="colour")

    def test_unknown_key(self, session):
        session.ingest_records(self.RECORDS)

        with pytest.raises(ValueError):
            session.select_columns(colour="value")

    def test_without_dataset(self, session):
        with pytest.raises(ValueError):
            session.select_columns(value_col="speed")

    def test_keeps_time_bucket_of_dataset(self, session):
        session.ingest_records([{"route": "A", "timestamp": "2024-05-01T08:15:00Z", "value": 1}],
                               time_bucket="hour")

        session.select_columns(route_col=None)

        assert session.get_status()["time_bucket"] == "hour"
        assert [point.key for point in session.time_series()] == ["2024-05-01T08:00"]

    def test_newer_ingestion_during_reselection_wins(self, session, monkeypatch):
        session.ingest_records([{"route": "OLD", "value": 1, "speed": 2}])
        derive = session._derive
        interleaved = []

        def derive_then_ingest(dataset):
            derive(dataset)
            if interleaved:
                return
            interleaved.append(dataset)
            session.ingest_records([{"route": "NEW", "value": 3, "speed": 4}])

        monkeypatch.setattr(session, "_derive", derive_then_ingest)

        assert session.select_columns(value_col="speed") is None
        assert [item.route for item in session.route_stats()] == ["NEW"]
        assert session.mapping.value_col == "value"

    def test_clear_during_reselection_wins(self, session, monkeypatch):
        session.ingest_records(self.RECORDS)
        derive = session._derive

        def derive_then_clear(dataset):
            derive(dataset)
            session.clear()

        monkeypatch.setattr(session, "_derive", derive_then_clear)

        assert session.select_columns(value_col="speed") is None
        assert not session.has_data


class TestExport:
    def test_payload_layout(self, session, traffic_csv):
        session.ingest_csv(traffic_csv)

        payload = session.export()

        assert set(payload) == {"meta", "route_stats", "series", "predictions", "recommendations"}
        assert payload["meta"]["rows"] == 4
        assert payload["meta"]["source"] == "csv"
        assert payload["meta"]["time_bucket"] == "minute"
        assert payload["meta"]["mapping"]["value_col"] == "value"
        assert payload["recommendations"] == ["R2", "R1"]
        assert {"route": "R3", "avg": None, "label": "NoData"} in payload["predictions"]

    def test_include_records(self, session, scenario_a_records):
        session.ingest_records(scenario_a_records)

        payload = session.export(include_records=True)

        assert payload["records"] == scenario_a_records

    def test_empty_export(self, session):
        payload = session.export()

        assert payload["meta"]["rows"] == 0
        assert payload["route_stats"] == []

    def test_round_trip(self, quiet_config, traffic_csv):
        original = TrafficSession(quiet_config)
        original.ingest_csv(traffic_csv)
        path = original.save_export("snapshot.json")

        exported = ExportStore(quiet_config.export_dir, verbose=False).load_records(path)
        reimported = TrafficSession(quiet_config)
        reimported.ingest_records(exported.records, exported.fields)

        assert reimported.route_stats() == original.route_stats()
        assert reimported.time_series() == original.time_series()
        assert [r.to_dict() for r in reimported.predictions()] == [r.to_dict() for r in original.predictions()]

    def test_round_trip_after_column_selection(self, quiet_config):
        records = [
            {"route": "R1", "timestamp": "2024-05-01T08:15:00Z", "value": 40, "speed": 5},
            {"route": "R1", "timestamp": "2024-05-01T09:40:00Z", "value": 60, "speed": 7},
            {"route": "R2", "timestamp": "2024-05-01T09:45:00Z", "value": 10, "speed": 9},
        ]
        original = TrafficSession(quiet_config)
        original.ingest_records(records, time_bucket="hour")
        original.select_columns(value_col="speed")
        path = original.save_export("selected.json")

        exported = ExportStore(quiet_config.export_dir, verbose=False).load_records(path)
        reimported = TrafficSession(quiet_config)
        reimported.ingest_records(
            exported.records,
            exported.fields,
            mapping=exported.mapping,
            time_bucket=exported.time_bucket,
        )

        assert {item.route: item.avg for item in reimported.route_stats()} == {"R1": 6.0, "R2": 9.0}
        assert reimported.route_stats() == original.route_stats()
        assert reimported.time_series() == original.time_series()
        assert reimported.mapping == original.mapping
