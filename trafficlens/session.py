# ==============================================
# TrafficSession: Session-Scoped Orchestrator
# ==============================================
#
# PURPOSE:
#   This is the MAIN CLASS that ties all 5 topics together. A
#   dashboard (or the CLI) owns one TrafficSession; everything
#   else is internal.
#
# HOW IT CONNECTS THE TOPICS:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                     TrafficSession                       │
#   │                                                          │
#   │  TOPIC 1: INGESTION      parse_text / read_file / fetch   │
#   │                 │ raw records + declared fields          │
#   │                 ▼                                        │
#   │  TOPIC 2: ANALYSIS       SchemaInferencer → profiles      │
#   │                 │ default ColumnMapping (+ user override) │
#   │                 ▼                                        │
#   │  TOPIC 3: NORMALIZATION  RowNormalizer → NormalizedRows   │
#   │                 │                                        │
#   │                 ▼                                        │
#   │  TOPIC 4: AGGREGATION    RouteAggregator                  │
#   │                          TimeSeriesAggregator             │
#   │                 │ route averages                         │
#   │                 ▼                                        │
#   │  TOPIC 5: PREDICTION     CongestionClassifier             │
#   │                          RouteRecommender                 │
#   └──────────────────────────────────────────────────────────┘
#
# DATASET LIFECYCLE:
# ------------------
#   The session holds at most one Dataset snapshot. Every ingestion
#   builds a brand-new snapshot and swaps it in only once it is
#   complete, so views never mix rows of two datasets.
#
#   Parsing may happen elsewhere (a worker thread, a web request):
#     ticket = session.begin_ingestion()
#     ... parse ...
#     session.complete_ingestion(ticket, records, fields)
#   Starting a newer ingestion supersedes older tickets; completing a
#   superseded ticket discards its result and returns None.
#
#   A failed parse raises IngestionError and leaves the previous
#   snapshot active. select_columns() re-maps a copy of the current
#   snapshot and only installs it if that snapshot is still current.
#
# ==============================================

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from trafficlens.config import AppConfig, get_config
from trafficlens.errors import IngestionError
from trafficlens.ingestion.parsers import (
    ParsedBatch,
    fetch_dataset,
    parse_delimited,
    parse_json,
    parse_text,
    read_file,
    union_fields,
)
from trafficlens.normalization.type_detector import TypeDetector
from trafficlens.normalization.mapping import MAPPING_KEYS, ColumnMapping
from trafficlens.normalization.row_normalizer import NormalizedRow, RowNormalizer
from trafficlens.analysis.column_stats import ColumnStats
from trafficlens.analysis.profile import ColumnProfile, InferenceThresholds
from trafficlens.analysis.schema_inferencer import SchemaInferencer
from trafficlens.aggregation.aggregator import RouteAggregator, TimeSeriesAggregator, top_routes
from trafficlens.aggregation.buckets import RouteAverage, SeriesPoint
from trafficlens.prediction.classifier import CongestionClassifier, PredictionResult
from trafficlens.prediction.recommender import RouteRecommender
from trafficlens.persistence.export_store import ExportStore, build_export_payload


@dataclass
class Dataset:
    """One completed ingestion: raw input plus every derived structure."""

    source: str
    records: List[Dict[str, Any]]
    fields: List[str]
    profiles: List[ColumnProfile]
    column_stats: Dict[str, ColumnStats]
    inferred_mapping: ColumnMapping
    mapping: ColumnMapping
    rows: List[NormalizedRow] = field(default_factory=list)
    dropped_count: int = 0
    overflow_count: int = 0
    skipped_lines: int = 0
    route_aggregator: RouteAggregator = field(default_factory=RouteAggregator)
    time_aggregator: TimeSeriesAggregator = field(default_factory=TimeSeriesAggregator)
    ingested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class IngestionReport:
    """Counters a dashboard shows after an ingestion or column re-selection."""

    source: str
    total_records: int
    row_count: int
    dropped_count: int
    overflow_count: int
    skipped_lines: int
    fields: List[str]
    profiles: List[ColumnProfile]
    mapping: ColumnMapping
    route_count: int
    qualifying_route_count: int
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "total_records": self.total_records,
            "row_count": self.row_count,
            "dropped_count": self.dropped_count,
            "overflow_count": self.overflow_count,
            "skipped_lines": self.skipped_lines,
            "fields": list(self.fields),
            "profiles": [profile.to_dict() for profile in self.profiles],
            "mapping": self.mapping.to_dict(),
            "route_count": self.route_count,
            "qualifying_route_count": self.qualifying_route_count,
            "generated_at": self.generated_at.isoformat(),
        }


class TrafficSession:
    """
    Session-scoped traffic analytics engine.

    Owns the current Dataset and exposes the derived views. Views on an
    empty session return empty lists / zero counts, never raise.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        """
        Initialize the session with all engine components.

        Args:
            config: Application configuration. If None, loads from environment.
        """
        self._config = config or get_config()

        self._type_detector = TypeDetector()
        self._inferencer = SchemaInferencer(
            InferenceThresholds(
                min_role_fraction=self._config.inference.min_role_fraction,
                sample_size=self._config.inference.sample_size,
            ),
            self._type_detector,
        )
        self._normalizer = RowNormalizer(
            self._type_detector,
            row_cap=self._config.normalization.row_cap,
        )
        self._classifier = CongestionClassifier()
        self._recommender = RouteRecommender(self._config.analytics.top_n)

        self._dataset: Optional[Dataset] = None
        self._report: Optional[IngestionReport] = None
        self._generation = 0
        self._lock = threading.Lock()

    # ======================================
    # Ingestion
    # ======================================
    def begin_ingestion(self) -> int:
        """
        Announce a new ingestion. Any older, still running ingestion
        is superseded.

        Returns:
            Ticket to hand to complete_ingestion()
        """
        with self._lock:
            self._generation += 1
            return self._generation

    def complete_ingestion(
        self,
        ticket: int,
        records: Iterable[Mapping[str, Any]],
        fields: Optional[Sequence[str]] = None,
        source: str = "records",
        skipped_lines: int = 0,
        mapping: Optional[Mapping[str, Any]] = None,
        time_bucket: Optional[str] = None
    ) -> Optional[IngestionReport]:
        """
        Run inference → normalization → aggregation for a parsed batch
        and install it as the current dataset.

        Args:
            ticket: Value returned by begin_ingestion()
            records: Raw records
            fields: Declared field list (union of record keys when None)
            source: Label shown in reports and exports
            skipped_lines: Lines the parser skipped
            mapping: Optional manual column selection applied over the inferred one
            time_bucket: Time-series resolution (defaults to config.analytics.time_bucket)

        Returns:
            IngestionReport, or None if a newer ingestion superseded this ticket
        """
        if ticket != self._generation:
            self._log(f"⚠ Discarded superseded ingestion of {source}")
            return None

        dataset = self._build_dataset(records, fields, source, skipped_lines, mapping, time_bucket)

        with self._lock:
            # a newer ingestion may have started while this one was building
            if ticket != self._generation:
                self._log(f"⚠ Discarded superseded ingestion of {source}")
                return None
            self._dataset = dataset
            self._report = self._make_report(dataset)

        self._log(
            f"✓ Ingested {self._report.row_count} rows from {source} "
            f"(dropped {dataset.dropped_count}, overflow {dataset.overflow_count}, "
            f"skipped lines {dataset.skipped_lines})"
        )
        if self._report.qualifying_route_count == 0:
            self._log("⚠ No route has a numeric value; predictions will be NoData")
        return self._report

    def ingest_records(
        self,
        records: Iterable[Mapping[str, Any]],
        fields: Optional[Sequence[str]] = None,
        source: str = "records",
        mapping: Optional[Mapping[str, Any]] = None,
        time_bucket: Optional[str] = None
    ) -> IngestionReport:
        """Ingest already parsed records."""
        ticket = self.begin_ingestion()
        return self.complete_ingestion(
            ticket, records, fields, source=source, mapping=mapping, time_bucket=time_bucket
        )

    def ingest_text(
        self,
        text: str,
        source: str = "text",
        mapping: Optional[Mapping[str, Any]] = None
    ) -> IngestionReport:
        """Ingest pasted text, JSON or delimited."""
        return self._ingest(lambda: parse_text(text, source=source), mapping)

    def ingest_csv(
        self,
        text: str,
        delimiter: Optional[str] = None,
        source: str = "csv",
        mapping: Optional[Mapping[str, Any]] = None
    ) -> IngestionReport:
        return self._ingest(lambda: parse_delimited(text, delimiter=delimiter, source=source), mapping)

    def ingest_json(
        self,
        text: str,
        source: str = "json",
        mapping: Optional[Mapping[str, Any]] = None
    ) -> IngestionReport:
        return self._ingest(lambda: parse_json(text, source=source), mapping)

    def ingest_file(
        self,
        path: Union[str, Path],
        mapping: Optional[Mapping[str, Any]] = None
    ) -> IngestionReport:
        return self._ingest(lambda: read_file(path), mapping)

    def ingest_url(
        self,
        url: str,
        mapping: Optional[Mapping[str, Any]] = None
    ) -> IngestionReport:
        timeout = self._config.fetch_timeout_seconds
        return self._ingest(lambda: fetch_dataset(url, timeout=timeout), mapping)

    def _ingest(self, load, mapping: Optional[Mapping[str, Any]]) -> IngestionReport:
        ticket = self.begin_ingestion()
        try:
            batch: ParsedBatch = load()
        except IngestionError as e:
            self._log(f"✗ Ingestion failed: {e}")
            raise
        return self.complete_ingestion(
            ticket,
            batch.records,
            batch.fields,
            source=batch.source,
            skipped_lines=batch.skipped_lines,
            mapping=mapping,
        )

    # ======================================
    # Column selection
    # ======================================
    def select_columns(
        self,
        mapping: Optional[Mapping[str, Any]] = None,
        **override
    ) -> Optional[IngestionReport]:
        """
        Re-derive every view with a manual column selection.

        Inference is not re-run; the current records are re-normalized
        with the inferred mapping plus the override. If another
        ingestion, clear or re-selection lands while this one is
        building, the re-mapped copy is discarded and None is returned.

        Examples:
            session.select_columns(value_col="speed")
            session.select_columns({"routeCol": "segment", "latCol": None})

        Raises:
            ValueError: No dataset, an unknown mapping key, or an unknown column
        """
        with self._lock:
            current = self._dataset
            generation = self._generation
        if current is None:
            raise ValueError("No dataset ingested; nothing to re-map")

        selection = dict(mapping or {})
        selection.update(override)

        resolved = current.mapping.resolve(selection)
        self._check_columns(resolved, current.fields)

        dataset = Dataset(
            source=current.source,
            records=current.records,
            fields=current.fields,
            profiles=current.profiles,
            column_stats=current.column_stats,
            inferred_mapping=current.inferred_mapping,
            mapping=resolved,
            skipped_lines=current.skipped_lines,
            time_aggregator=TimeSeriesAggregator(current.time_aggregator.resolution),
        )
        self._derive(dataset)

        with self._lock:
            # the dataset this copy was built from must still be the installed one
            if generation != self._generation or current is not self._dataset:
                self._log("⚠ Discarded column re-selection of a replaced dataset")
                return None
            self._dataset = dataset
            self._report = report = self._make_report(dataset)

        self._log(f"✓ Re-mapped columns: {resolved.requested()}")
        return report

    def clear(self) -> None:
        """Drop the current dataset; every view becomes empty."""
        with self._lock:
            self._generation += 1
            self._dataset = None
            self._report = None
        self._log("✓ Dataset cleared")

    # ======================================
    # Views
    # ======================================
    @property
    def dataset(self) -> Optional[Dataset]:
        return self._dataset

    @property
    def has_data(self) -> bool:
        return self._dataset is not None

    @property
    def last_report(self) -> Optional[IngestionReport]:
        return self._report

    @property
    def mapping(self) -> ColumnMapping:
        return self._dataset.mapping if self._dataset else ColumnMapping()

    @property
    def rows(self) -> List[NormalizedRow]:
        return list(self._dataset.rows) if self._dataset else []

    def column_profiles(self) -> List[ColumnProfile]:
        return list(self._dataset.profiles) if self._dataset else []

    def column_stats(self) -> Dict[str, ColumnStats]:
        return dict(self._dataset.column_stats) if self._dataset else {}

    def route_stats(self) -> List[RouteAverage]:
        """Per-route averages in first-seen route order."""
        if self._dataset is None:
            return []
        return self._dataset.route_aggregator.averages()

    def top_routes(self, limit: Optional[int] = None) -> List[RouteAverage]:
        """Busiest routes first."""
        if limit is None:
            limit = self._config.analytics.top_routes_limit
        return top_routes(self.route_stats(), limit)

    def time_series(self) -> List[SeriesPoint]:
        if self._dataset is None:
            return []
        return self._dataset.time_aggregator.series()

    def predictions(self) -> List[PredictionResult]:
        return self._classifier.classify(self.route_stats())

    def prediction_distribution(self) -> Dict[str, int]:
        return self._classifier.get_label_distribution(self.predictions())

    def geo_points(self, limit: Optional[int] = None) -> List[NormalizedRow]:
        """
        Rows with both latitude and longitude, in row order.

        Args:
            limit: Maximum markers (defaults to config.analytics.map_marker_limit)
        """
        if self._dataset is None:
            return []
        if limit is None:
            limit = self._config.analytics.map_marker_limit
        points = []
        for row in self._dataset.rows:
            if len(points) >= limit:
                break
            if row.has_geo:
                points.append(row)
        return points

    def recommendations(self, top_n: Optional[int] = None) -> List[str]:
        return self._recommender.recommend(self.route_stats(), top_n)

    def recommendation_details(self, top_n: Optional[int] = None) -> List[Dict[str, Any]]:
        route_stats = self.route_stats()
        predictions = self._classifier.classify(route_stats)
        return self._recommender.describe(route_stats, predictions, top_n)

    def get_status(self) -> Dict[str, Any]:
        """
        Get current session status.

        Returns:
            Dictionary with dataset state information.
        """
        dataset = self._dataset
        if dataset is None:
            return {
                "has_data": False,
                "generation": self._generation,
                "time_bucket": self._config.analytics.time_bucket,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        return {
            "has_data": True,
            "generation": self._generation,
            "source": dataset.source,
            "total_records": len(dataset.records),
            "row_count": len(dataset.rows),
            "dropped_count": dataset.dropped_count,
            "overflow_count": dataset.overflow_count,
            "skipped_lines": dataset.skipped_lines,
            "route_count": len(dataset.route_aggregator.buckets),
            "time_bucket_count": len(dataset.time_aggregator.buckets),
            "geo_row_count": sum(1 for row in dataset.rows if row.has_geo),
            "mapping": dataset.mapping.to_dict(),
            "time_bucket": dataset.time_aggregator.resolution,
            "ingested_at": dataset.ingested_at.isoformat(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    # ======================================
    # Export
    # ======================================
    def export(self, include_records: bool = False) -> Dict[str, Any]:
        """
        Build the export document for the current dataset.

        Args:
            include_records: Embed the raw records so the export can be re-ingested
        """
        dataset = self._dataset
        route_stats = self.route_stats()
        if dataset is None:
            return build_export_payload(
                rows=0,
                time_bucket=self._config.analytics.time_bucket,
                records=[] if include_records else None,
            )
        return build_export_payload(
            rows=len(dataset.rows),
            route_stats=route_stats,
            series=self.time_series(),
            predictions=self._classifier.classify(route_stats),
            recommendations=self._recommender.recommend(route_stats),
            dropped_rows=dataset.dropped_count,
            overflow_rows=dataset.overflow_count,
            source=dataset.source,
            fields=dataset.fields,
            mapping=dataset.mapping.to_dict(),
            time_bucket=dataset.time_aggregator.resolution,
            records=dataset.records if include_records else None,
        )

    def save_export(
        self,
        path: Union[str, Path] = ExportStore.DEFAULT_FILENAME,
        include_records: bool = True
    ) -> Path:
        """Write export() to a JSON file (relative paths land in config.export_dir)."""
        store = ExportStore(self._config.export_dir, verbose=self._config.verbose)
        return store.save(self.export(include_records=include_records), path)

    # ======================================
    # Internal
    # ======================================
    def _build_dataset(
        self,
        records: Iterable[Mapping[str, Any]],
        fields: Optional[Sequence[str]],
        source: str,
        skipped_lines: int,
        override: Optional[Mapping[str, Any]],
        time_bucket: Optional[str] = None
    ) -> Dataset:
        records = [dict(record) for record in records or [] if isinstance(record, Mapping)]
        if fields is None:
            fields = union_fields(records)
        fields = [str(name) for name in fields]

        column_stats = self._inferencer.analyze(records, fields)
        profiles = self._inferencer.profile_all(fields, column_stats)
        inferred = self._inferencer.suggest_mapping(profiles)
        mapping = inferred.resolve(override)
        self._check_columns(mapping, fields)

        dataset = Dataset(
            source=source,
            records=records,
            fields=fields,
            profiles=profiles,
            column_stats=column_stats,
            inferred_mapping=inferred,
            mapping=mapping,
            skipped_lines=skipped_lines,
            time_aggregator=TimeSeriesAggregator(time_bucket or self._config.analytics.time_bucket),
        )
        self._derive(dataset)
        return dataset

    def _derive(self, dataset: Dataset) -> None:
        result = self._normalizer.normalize(dataset.records, dataset.mapping)
        dataset.rows = result.rows
        dataset.dropped_count = result.dropped_count
        dataset.overflow_count = result.overflow_count

        dataset.route_aggregator.clear()
        dataset.time_aggregator.clear()
        dataset.route_aggregator.fold(dataset.rows)
        dataset.time_aggregator.fold(dataset.rows)

    def _make_report(self, dataset: Dataset) -> IngestionReport:
        averages = dataset.route_aggregator.averages()
        return IngestionReport(
            source=dataset.source,
            total_records=len(dataset.records),
            row_count=len(dataset.rows),
            dropped_count=dataset.dropped_count,
            overflow_count=dataset.overflow_count,
            skipped_lines=dataset.skipped_lines,
            fields=list(dataset.fields),
            profiles=list(dataset.profiles),
            mapping=dataset.mapping,
            route_count=len(averages),
            qualifying_route_count=sum(1 for item in averages if item.has_average),
        )

    def _check_columns(self, mapping: ColumnMapping, fields: Sequence[str]) -> None:
        known = set(fields)
        for key in MAPPING_KEYS:
            column = getattr(mapping, key)
            if column is not None and column not in known:
                raise ValueError(
                    f"Column '{column}' selected for {key} is not in the dataset. "
                    f"Available: {list(fields)}"
                )

    def _log(self, message: str) -> None:
        if self._config.verbose:
            print(message)

