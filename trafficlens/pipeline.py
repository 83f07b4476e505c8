"""
==============================================
Traffic Pipeline
==============================================

High-level wrapper around TrafficSession for loading datasets from
files, URLs, pasted text or earlier exports, and printing a summary.

USAGE EXAMPLES:

1. Analyze a CSV file:
    from trafficlens.pipeline import TrafficPipeline

    pipeline = TrafficPipeline()
    pipeline.load("data/traffic.csv")
    pipeline.print_summary()

2. Download a dataset and override the inferred value column:
    pipeline = TrafficPipeline()
    pipeline.load("https://example.org/traffic.json", mapping={"value_col": "speed"})

3. Context manager (dataset cleared on exit):
    with TrafficPipeline() as pipeline:
        pipeline.load_text('[{"route": "R1", "value": 40}]')
        print(pipeline.summary())

4. Save and re-import an export:
    path = pipeline.export("snapshot.json")
    TrafficPipeline().load_export(path)
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from trafficlens.config import AppConfig, get_config
from trafficlens.persistence.export_store import ExportStore
from trafficlens.session import IngestionReport, TrafficSession


class TrafficPipeline:
    """
    Convenience layer over TrafficSession for the different input kinds.
    """

    def __init__(self, config: Optional[AppConfig] = None, session: Optional[TrafficSession] = None):
        """
        Initialize the pipeline.

        Args:
            config: Optional configuration. If None, loads from environment.
            session: Optional existing session to drive
        """
        self._config = config or get_config()
        self._session = session or TrafficSession(self._config)

    @property
    def session(self) -> TrafficSession:
        return self._session

    def load(self, source: Union[str, Path], mapping: Optional[Mapping[str, Any]] = None) -> IngestionReport:
        """
        Load a dataset from a file path or an http(s) URL.

        Args:
            source: Path or URL
            mapping: Optional manual column selection

        Returns:
            IngestionReport of the installed dataset
        """
        if is_url(source):
            return self.load_url(str(source), mapping)
        return self.load_path(source, mapping)

    def load_path(self, path: Union[str, Path], mapping: Optional[Mapping[str, Any]] = None) -> IngestionReport:
        self._log(f"📥 Loading {path}...")
        return self._session.ingest_file(path, mapping=mapping)

    def load_url(self, url: str, mapping: Optional[Mapping[str, Any]] = None) -> IngestionReport:
        self._log(f"🌐 Fetching {url}...")
        return self._session.ingest_url(url, mapping=mapping)

    def load_text(self, text: str, mapping: Optional[Mapping[str, Any]] = None) -> IngestionReport:
        return self._session.ingest_text(text, mapping=mapping)

    def load_export(self, path: Union[str, Path], mapping: Optional[Mapping[str, Any]] = None) -> IngestionReport:
        """
        Re-ingest the raw records embedded in an earlier export.

        The column selection and time bucket stored in the export are
        reapplied, so the route and time-series views come back as they
        were exported.

        Args:
            path: Export file (relative paths resolve in config.export_dir)
            mapping: Column selection to use instead of the exported one
        """
        store = ExportStore(self._config.export_dir, verbose=self._config.verbose)
        exported = store.load_records(path)
        return self._session.ingest_records(
            exported.records,
            exported.fields,
            source=str(path),
            mapping=mapping if mapping is not None else exported.mapping,
            time_bucket=exported.time_bucket,
        )

    def export(self, path: Union[str, Path] = ExportStore.DEFAULT_FILENAME, include_records: bool = True) -> Path:
        return self._session.save_export(path, include_records=include_records)

    def summary(self, top_n: Optional[int] = None) -> Dict[str, Any]:
        """
        Collect the views a dashboard shows on one page.

        Args:
            top_n: Number of recommended routes (defaults to config)

        Returns:
            Summary dictionary
        """
        session = self._session
        return {
            "status": session.get_status(),
            "top_routes": [item.to_dict() for item in session.top_routes()],
            "prediction_distribution": session.prediction_distribution(),
            "recommendations": session.recommendation_details(top_n),
            "series_points": len(session.time_series()),
            "geo_points": len(session.geo_points()),
        }

    def print_summary(self, top_n: Optional[int] = None) -> Dict[str, Any]:
        """Print summary() in a human-readable form and return it."""
        summary = self.summary(top_n)
        status = summary["status"]

        if not status["has_data"]:
            print("⚠ No dataset loaded")
            return summary

        print(f"\n📊 Summary ({status['source']}):")
        print(f"   → Records: {status['total_records']}")
        print(f"   → Rows kept: {status['row_count']}")
        print(f"   → Dropped: {status['dropped_count']} (overflow {status['overflow_count']}, "
              f"skipped lines {status['skipped_lines']})")
        print(f"   → Routes: {status['route_count']}")
        print(f"   → Time buckets ({status['time_bucket']}): {summary['series_points']}")
        print(f"   → Map markers: {summary['geo_points']}")
        print(f"   → Mapping: {status['mapping']}")

        print("\nCongestion labels:")
        for label, count in summary["prediction_distribution"].items():
            print(f"   → {label}: {count}")

        print("\nRecommended routes:")
        if not summary["recommendations"]:
            print("   → (no route has a numeric average)")
        for item in summary["recommendations"]:
            print(f"   → {item['route']}: avg {item['avg']:.2f} ({item['label']})")

        return summary

    def close(self) -> None:
        """Drop the loaded dataset."""
        self._session.clear()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False

    def _log(self, message: str) -> None:
        if self._config.verbose:
            print(message)


def is_url(source: Union[str, Path]) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))
