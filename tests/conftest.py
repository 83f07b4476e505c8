# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - quiet_config        → AppConfig with progress output off, exports in tmp_path
# - session             → TrafficSession built from quiet_config
# - scenario_a_records  → three route/value records (R1: 40, 60; R2: 10)
# - traffic_csv         → small CSV with route, timestamp, value, lat, lng
# - traffic_csv_file    → traffic_csv written to tmp_path
# - fake_response       → factory for requests.Response stand-ins
#
# NOTES:
# ------
# - No test touches the network; requests.get is monkeypatched.
# - Use tmp_path for every file written.
# ==============================================

import pytest
import requests

from trafficlens.config import AppConfig
from trafficlens.session import TrafficSession


TRAFFIC_CSV = """route,timestamp,value,lat,lng
R1,2024-05-01T08:15:10Z,40,12.97,77.59
R1,2024-05-01T08:15:50Z,60,12.98,77.60
R2,2024-05-01T08:16:05Z,10,95,77.61
R3,2024-05-01T09:00:00Z,,12.99,77.62
"""


@pytest.fixture
def quiet_config(tmp_path) -> AppConfig:
    return AppConfig(export_dir=str(tmp_path / "exports"), verbose=False)


@pytest.fixture
def session(quiet_config) -> TrafficSession:
    return TrafficSession(quiet_config)


@pytest.fixture
def scenario_a_records() -> list[dict]:
    return [
        {"route": "R1", "value": 40},
        {"route": "R1", "value": 60},
        {"route": "R2", "value": 10},
    ]


@pytest.fixture
def traffic_csv() -> str:
    return TRAFFIC_CSV


@pytest.fixture
def traffic_csv_file(tmp_path, traffic_csv):
    path = tmp_path / "traffic.csv"
    path.write_text(traffic_csv, encoding="utf-8")
    return path


class FakeResponse:
    """Just enough of requests.Response for fetch_dataset()."""

    def __init__(self, text: str, content_type: str = "text/csv", status_code: int = 200):
        self.text = text
        self.headers = {"Content-Type": content_type}
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")


@pytest.fixture
def fake_response():
    return FakeResponse
