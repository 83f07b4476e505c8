import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Union

from trafficlens.errors import ParseError
from trafficlens.ingestion.parsers import union_fields


# ==============================================
# Export Payload
# ==============================================
#
# PURPOSE:
#   Build the JSON document a dashboard offers for download:
#   ingestion metadata plus every derived view of the dataset.
#
# LAYOUT:
# -------
#   {
#     "meta": {
#       "generated_at", "rows", "dropped_rows", "overflow_rows",
#       "source", "fields", "mapping", "time_bucket"
#     },
#     "route_stats":     [{route, avg, count}, ...],
#     "series":          [{date, value, count}, ...],   ascending by date
#     "predictions":     [{route, avg, label}, ...],
#     "recommendations": [route, ...],
#     "records":         [raw record, ...]               (optional)
#   }
#
#   "records" is what makes an export re-importable: feeding them back
#   through a session with meta.mapping as the column selection and
#   meta.time_bucket as the resolution reproduces the same route and
#   time-series views.
#
def build_export_payload(
    rows: int,
    route_stats: Iterable[Any] = (),
    series: Iterable[Any] = (),
    predictions: Iterable[Any] = (),
    recommendations: Sequence[str] = (),
    dropped_rows: int = 0,
    overflow_rows: int = 0,
    source: Optional[str] = None,
    fields: Sequence[str] = (),
    mapping: Optional[Mapping[str, Optional[str]]] = None,
    time_bucket: str = "minute",
    records: Optional[Sequence[Mapping[str, Any]]] = None,
    generated_at: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Assemble an export document.

    Args:
        rows: Normalized row count
        route_stats: RouteAverage objects or dicts
        series: SeriesPoint objects or dicts
        predictions: PredictionResult objects or dicts
        recommendations: Recommended route identifiers
        records: Raw records to embed; omitted from the payload when None

    Returns:
        JSON-serialisable dictionary
    """
    generated_at = generated_at or datetime.now(timezone.utc)

    payload = {
        "meta": {
            "generated_at": generated_at.isoformat(),
            "rows": rows,
            "dropped_rows": dropped_rows,
            "overflow_rows": overflow_rows,
            "source": source,
            "fields": list(fields),
            "mapping": dict(mapping) if mapping is not None else None,
            "time_bucket": time_bucket,
        },
        "route_stats": [_as_dict(item) for item in route_stats],
        "series": [_as_dict(item) for item in series],
        "predictions": [_as_dict(item) for item in predictions],
        "recommendations": list(recommendations),
    }
    if records is not None:
        payload["records"] = [dict(record) for record in records]
    return payload


def _as_dict(item: Any) -> Dict[str, Any]:
    if hasattr(item, "to_dict"):
        return item.to_dict()
    return dict(item)


class ExportedRecords(NamedTuple):
    """What load_records() hands back for re-ingestion."""

    records: List[Dict[str, Any]]
    fields: List[str]
    mapping: Optional[Dict[str, Optional[str]]] = None
    time_bucket: Optional[str] = None


# CLASS: ExportStore
# ------------------
#   Stateful: holds a reference to the export directory.
#
#   Constructor:
#   ------------
#   - __init__(export_dir: str = "exports/", verbose: bool = True)
#       The directory is created on the first save, not here.
#
#   Methods:
#   --------
#   - save(payload, filename) -> Path
#   - load(path) -> dict
#   - load_records(path) -> ExportedRecords(records, fields, mapping, time_bucket)
#   - list_exports() -> list[Path]
#   - delete(path) -> bool
#
class ExportStore:
    """
    Reads and writes export documents as indented JSON files.

    Relative paths are resolved against the export directory;
    absolute paths are used as given.
    """

    DEFAULT_FILENAME = "dashboard_export.json"

    def __init__(self, export_dir: str = "exports/", verbose: bool = True):
        """
        Initialize the export store.

        Args:
            export_dir: Directory to store export files
            verbose: Print a line for every file written or read
        """
        self.export_dir = Path(export_dir)
        self.verbose = verbose

    def save(self, payload: Mapping[str, Any], filename: Union[str, Path] = DEFAULT_FILENAME) -> Path:
        """
        Write an export document to disk.

        Args:
            payload: Output of build_export_payload()
            filename: File name inside the export directory, or an absolute path

        Returns:
            Path of the written file
        """
        path = self._resolve(filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        # default=str keeps datetimes embedded in raw records serialisable
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False, default=str)

        rows = payload.get("meta", {}).get("rows")
        self._log(f"✓ Saved export ({rows} rows) to {path}")
        return path

    def load(self, path: Union[str, Path]) -> Dict[str, Any]:
        """
        Read an export document back.

        Returns:
            The payload dictionary, empty if the file doesn't exist

        Raises:
            ParseError: The file is not valid JSON or not an export document
        """
        path = self._resolve(path)
        if not path.exists():
            self._log(f"⚠ No export file found at {path}")
            return {}

        with open(path, "r", encoding="utf-8") as f:
            try:
                payload = json.load(f)
            except json.JSONDecodeError as e:
                raise ParseError(f"invalid export file: {e.msg}", str(path)) from e

        if not isinstance(payload, dict) or "meta" not in payload:
            raise ParseError("not an export document (missing 'meta')", str(path))

        self._log(f"✓ Loaded export from {path}")
        return payload

    def load_records(self, path: Union[str, Path]) -> "ExportedRecords":
        """
        Raw records of an export plus the column selection and time
        bucket they were analysed with, ready for re-ingestion.

        Raises:
            ParseError: The export was saved without its raw records
        """
        payload = self.load(path)
        if "records" not in payload:
            raise ParseError("export does not contain raw records", str(self._resolve(path)))

        records = [record for record in payload["records"] if isinstance(record, dict)]
        meta = payload["meta"]
        fields = meta.get("fields") or union_fields(records)
        mapping = meta.get("mapping")
        return ExportedRecords(
            records=records,
            fields=list(fields),
            mapping=dict(mapping) if isinstance(mapping, dict) else None,
            time_bucket=meta.get("time_bucket"),
        )

    def list_exports(self) -> List[Path]:
        return sorted(self.export_dir.glob("*.json"))

    def delete(self, path: Union[str, Path]) -> bool:
        path = self._resolve(path)
        if not path.exists():
            return False
        path.unlink()
        self._log(f"🗑️  Deleted {path}")
        return True

    def _resolve(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.export_dir / path

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

