# ==============================================
# Tests for Configuration
# ==============================================

import pytest

from trafficlens import config as config_module
from trafficlens.config import AnalyticsConfig, AppConfig, get_config


@pytest.fixture
def fresh_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config_instance", None)
    for name in ("SAMPLE_SIZE", "ROLE_THRESHOLD", "ROW_CAP", "TIME_BUCKET", "TOP_N",
                 "TOP_ROUTES_LIMIT", "MAP_MARKER_LIMIT", "EXPORT_DIR",
                 "FETCH_TIMEOUT_SECONDS", "ENGINE_VERBOSE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    def test_app_config_defaults(self):
        config = AppConfig()

        assert config.inference.sample_size == 500
        assert config.inference.min_role_fraction == 0.8
        assert config.normalization.row_cap == 200_000
        assert config.analytics.time_bucket == "minute"
        assert config.analytics.top_n == 3
        assert config.analytics.map_marker_limit == 300
        assert config.export_dir == "exports/"
        assert config.verbose is True

    def test_bad_time_bucket(self):
        with pytest.raises(ValueError):
            AnalyticsConfig(time_bucket="week")


class TestGetConfig:
    def test_reads_environment(self, fresh_config):
        fresh_config.setenv("TOP_N", "5")
        fresh_config.setenv("TIME_BUCKET", "Hour")
        fresh_config.setenv("ROW_CAP", "10")
        fresh_config.setenv("ENGINE_VERBOSE", "off")

        config = get_config()

        assert config.analytics.top_n == 5
        assert config.analytics.time_bucket == "hour"
        assert config.normalization.row_cap == 10
        assert config.verbose is False

    def test_singleton(self, fresh_config):
        assert get_config() is get_config()
