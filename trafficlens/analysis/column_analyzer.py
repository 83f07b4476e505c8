# ==============================================
# ColumnAnalyzer
# ==============================================
#
# PURPOSE:
#   Observe a sample of raw records and accumulate per-column
#   evidence (ColumnStats). This is the "observation engine":
#   it watches values and counts which role predicates they meet.
#
# CLASS: ColumnAnalyzer
# ---------------------
#   Stateful: accumulates ColumnStats across analyze_batch calls.
#
#   Constructor:
#   ------------
#   - __init__(type_detector: TypeDetector)
#
#   Attributes:
#   -----------
#   - stats: dict[str, ColumnStats]  → Accumulated stats, one per declared column
#   - total_records: int             → Records observed
#
#   Methods:
#   --------
#   - analyze_batch(records, declared_fields) -> None
#       For each record, for each declared column, update that column's
#       stats. Missing keys are observed as null so every column sees
#       the same number of records.
#
#   - get_stats() -> dict[str, ColumnStats]
#
# ==============================================

from typing import Any, Dict, Iterable, Mapping, Sequence

from trafficlens.normalization.type_detector import TypeDetector
from .column_stats import ColumnStats


class ColumnAnalyzer:
    """
    Observes raw records and accumulates column statistics.
    """

    def __init__(self, type_detector: TypeDetector = None):
        """
        Initialize the ColumnAnalyzer.

        Args:
            type_detector: Optional TypeDetector instance. If not provided,
                          a new one will be created.
        """
        self.type_detector = type_detector or TypeDetector()
        self.stats: Dict[str, ColumnStats] = {}
        self.total_records: int = 0

    def analyze_batch(self, records: Iterable[Mapping[str, Any]], declared_fields: Sequence[str]) -> None:
        """
        Analyze a batch of raw records.

        Args:
            records: Raw records (already capped to the sample size by the caller)
            declared_fields: Column names reported by the parser
        """
        for name in declared_fields:
            if name not in self.stats:
                self.stats[name] = ColumnStats(name=name)

        for record in records:
            if not isinstance(record, Mapping):
                record = {}

            for name in declared_fields:
                self.stats[name].update(record.get(name), self.type_detector)

            self.total_records += 1

    def get_stats(self) -> Dict[str, ColumnStats]:
        """
        Return all accumulated column statistics.

        Returns:
            Dictionary mapping column names to their ColumnStats objects
        """
        return self.stats
