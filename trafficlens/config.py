# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to all other modules.
#
# CLASSES:
# --------
# - InferenceConfig (dataclass)
#     sample_size: int           (default 500)
#     min_role_fraction: float   (default 0.8)
#
# - NormalizationConfig (dataclass)
#     row_cap: int               (default 200000)
#
# - AnalyticsConfig (dataclass)
#     time_bucket: str           (default "minute")
#     top_n: int                 (default 3)
#     top_routes_limit: int      (default 10)
#     map_marker_limit: int      (default 300)
#
# - AppConfig (dataclass)
#     inference: InferenceConfig
#     normalization: NormalizationConfig
#     analytics: AnalyticsConfig
#     export_dir: str            (default "exports/")
#     fetch_timeout_seconds: float (default 10.0)
#     verbose: bool              (default True)
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# USAGE:
# ------
#   from trafficlens.config import get_config
#   config = get_config()
#   print(config.inference.sample_size)
#   print(config.analytics.time_bucket)
#
# ==============================================

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv


TIME_BUCKETS = ("minute", "hour", "day")


@dataclass
class InferenceConfig:
    """Schema inference sampling configuration."""
    sample_size: int = 500
    min_role_fraction: float = 0.8


@dataclass
class NormalizationConfig:
    """Row normalization limits."""
    row_cap: int = 200_000


@dataclass
class AnalyticsConfig:
    """Aggregation and presentation defaults."""
    time_bucket: str = "minute"
    top_n: int = 3
    top_routes_limit: int = 10
    map_marker_limit: int = 300

    def __post_init__(self):
        if self.time_bucket not in TIME_BUCKETS:
            raise ValueError(
                f"time_bucket must be one of {TIME_BUCKETS}, got {self.time_bucket!r}"
            )


@dataclass
class AppConfig:
    """Main application configuration."""
    inference: InferenceConfig = field(default_factory=InferenceConfig)
    normalization: NormalizationConfig = field(default_factory=NormalizationConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    export_dir: str = "exports/"
    fetch_timeout_seconds: float = 10.0
    verbose: bool = True


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    inference_config = InferenceConfig(
        sample_size=int(os.getenv("SAMPLE_SIZE", "500")),
        min_role_fraction=float(os.getenv("ROLE_THRESHOLD", "0.8"))
    )

    normalization_config = NormalizationConfig(
        row_cap=int(os.getenv("ROW_CAP", "200000"))
    )

    analytics_config = AnalyticsConfig(
        time_bucket=os.getenv("TIME_BUCKET", "minute").strip().lower(),
        top_n=int(os.getenv("TOP_N", "3")),
        top_routes_limit=int(os.getenv("TOP_ROUTES_LIMIT", "10")),
        map_marker_limit=int(os.getenv("MAP_MARKER_LIMIT", "300"))
    )

    _config_instance = AppConfig(
        inference=inference_config,
        normalization=normalization_config,
        analytics=analytics_config,
        export_dir=os.getenv("EXPORT_DIR", "exports/"),
        fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "10.0")),
        verbose=_env_flag("ENGINE_VERBOSE", "true")
    )

    return _config_instance
