# ==============================================
# SchemaInferencer
# ==============================================
#
# PURPOSE:
#   Takes a sample of raw records plus the parser's column list and
#   applies heuristic rules to produce a ColumnProfile per column.
#   This is the "brain" of ingestion: it decides which column is
#   the route, which is the time, which is the measurement.
#
# CLASS: SchemaInferencer
# -----------------------
#   Stateless: records in, profiles out. Never raises on bad data.
#
#   Methods:
#   --------
#   - infer(records, declared_fields) -> list[ColumnProfile]
#       Exactly one profile per declared field, in declared order.
#
#   - analyze(records, names) -> dict[str, ColumnStats]
#   - profile_all(names, stats) -> list[ColumnProfile]
#       infer() split in two so callers can keep the stats.
#
#   - profile_column(name, stats) -> ColumnProfile
#       Classify one column. Rules, first match wins:
#
#       NAME PASS (header tokens):
#         RULE 1: lat / latitude            → LATITUDE
#                 lon / lng / longitude     → LONGITUDE
#         RULE 2: time / date / timestamp / datetime → TEMPORAL
#         RULE 3: value / congestion / count / flow /
#                 speed / vehicles          → NUMERIC
#         RULE 4: route / road / segment / link → GROUP_KEY
#
#       VALUE PASS (>= min_role_fraction of non-null values):
#         RULE 1: numbers in -90..90        → LATITUDE
#                 numbers in -180..180      → LONGITUDE
#         RULE 2: parse as date/time        → TEMPORAL
#         RULE 3: numbers                   → NUMERIC
#
#       RULE 5: EVERYTHING ELSE             → UNKNOWN (confidence 0)
#
#   - suggest_mapping(profiles) -> ColumnMapping
#       Best column per role: name matches first, then confidence,
#       then declared order.
#
#   - get_role_distribution(profiles) -> dict
#       Count of columns per role.
#
# ==============================================

from itertools import islice
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from trafficlens.normalization.column_names import ColumnNameNormalizer
from trafficlens.normalization.mapping import ColumnMapping
from trafficlens.normalization.type_detector import TypeDetector
from .column_analyzer import ColumnAnalyzer
from .column_stats import ColumnStats
from .profile import ColumnProfile, ColumnRole, InferenceThresholds


class SchemaInferencer:
    """
    Applies heuristic rules to sampled column evidence to produce ColumnProfiles.
    """

    LATITUDE_TOKENS = {"lat", "latitude"}
    LONGITUDE_TOKENS = {"lon", "lng", "longitude"}
    TEMPORAL_TOKENS = {"time", "date", "timestamp", "datetime"}
    NUMERIC_TOKENS = {"value", "congestion", "count", "flow", "speed", "vehicles"}
    GROUP_KEY_TOKENS = {"route", "road", "segment", "link"}

    # Name pass order doubles as the rule precedence
    NAME_RULES = (
        (ColumnRole.LATITUDE, LATITUDE_TOKENS),
        (ColumnRole.LONGITUDE, LONGITUDE_TOKENS),
        (ColumnRole.TEMPORAL, TEMPORAL_TOKENS),
        (ColumnRole.NUMERIC, NUMERIC_TOKENS),
        (ColumnRole.GROUP_KEY, GROUP_KEY_TOKENS),
    )

    MAPPING_ROLES = (
        ("route_col", ColumnRole.GROUP_KEY),
        ("time_col", ColumnRole.TEMPORAL),
        ("value_col", ColumnRole.NUMERIC),
        ("lat_col", ColumnRole.LATITUDE),
        ("lng_col", ColumnRole.LONGITUDE),
    )

    def __init__(
        self,
        thresholds: InferenceThresholds = None,
        type_detector: TypeDetector = None
    ):
        """
        Initialize the SchemaInferencer with configurable thresholds.

        Args:
            thresholds: Optional InferenceThresholds. If not provided,
                       defaults will be used (80% role fraction, 500-record sample)
            type_detector: Optional shared TypeDetector
        """
        self.thresholds = thresholds or InferenceThresholds()
        self.type_detector = type_detector or TypeDetector()
        self._names = ColumnNameNormalizer()

    def analyze(
        self,
        records: Iterable[Mapping[str, Any]],
        declared_fields: Sequence[str]
    ) -> Dict[str, ColumnStats]:
        """
        Collect ColumnStats over the leading sample of a batch.

        Args:
            records: Raw records of the batch
            declared_fields: Column names reported by the parser

        Returns:
            Dictionary of column name → ColumnStats
        """
        analyzer = ColumnAnalyzer(self.type_detector)
        sample = islice(records or [], max(self.thresholds.sample_size, 0))
        analyzer.analyze_batch(sample, [str(name) for name in declared_fields or []])
        return analyzer.get_stats()

    def infer(
        self,
        records: Iterable[Mapping[str, Any]],
        declared_fields: Sequence[str]
    ) -> List[ColumnProfile]:
        """
        Infer one ColumnProfile per declared field.

        Args:
            records: Raw records of the batch (only the leading sample is read)
            declared_fields: Column names reported by the parser

        Returns:
            List of ColumnProfile in declared order
        """
        names = [str(name) for name in declared_fields or []]
        return self.profile_all(names, self.analyze(records, names))

    def profile_all(self, names: Sequence[str], stats: Dict[str, ColumnStats]) -> List[ColumnProfile]:
        """
        Profile every named column from already collected stats.

        A column that cannot be profiled comes back as Unknown with
        confidence 0 instead of failing the whole batch.
        """
        profiles = []
        for name in names:
            try:
                profile = self.profile_column(name, stats.get(name) or ColumnStats(name=name))
            except (TypeError, ValueError, ArithmeticError) as e:
                profile = ColumnProfile(
                    name=name,
                    role=ColumnRole.UNKNOWN,
                    confidence=0.0,
                    reason=f"Column '{name}' could not be profiled: {e}",
                )
            profiles.append(profile)
        return profiles

    def profile_column(self, name: str, stats: ColumnStats) -> ColumnProfile:
        """
        Classify a single column using name tokens, then value shape.

        Args:
            name: Column name as declared
            stats: Evidence gathered over the sample

        Returns:
            A ColumnProfile with role, confidence and reason
        """

        # NAME PASS: header tokens decide the role outright
        for role, tokens in self.NAME_RULES:
            if self._names.matches_any(name, tokens):
                if stats.non_null_count == 0:
                    confidence = 1.0
                else:
                    confidence = self._role_fraction(role, stats)
                reason = (
                    f"Column '{name}' is named like a {role.value} column; "
                    f"{confidence*100:.1f}% of sampled values agree."
                )
                return ColumnProfile(
                    name=name,
                    role=role,
                    confidence=confidence,
                    matched_on="name",
                    reason=reason,
                )

        # VALUE PASS: the sampled values decide
        threshold = self.thresholds.min_role_fraction
        if stats.non_null_count > 0:
            for role in (
                ColumnRole.LATITUDE,
                ColumnRole.LONGITUDE,
                ColumnRole.TEMPORAL,
                ColumnRole.NUMERIC,
            ):
                fraction = self._role_fraction(role, stats)
                if fraction >= threshold:
                    reason = (
                        f"{fraction*100:.1f}% of {stats.non_null_count} sampled values "
                        f"in column '{name}' look {role.value}."
                    )
                    return ColumnProfile(
                        name=name,
                        role=role,
                        confidence=fraction,
                        matched_on="values",
                        reason=reason,
                    )

        # RULE 5: nothing recognisable
        if stats.non_null_count == 0:
            reason = f"Column '{name}' has no non-null values in the sample."
        else:
            reason = (
                f"Column '{name}' matched no role "
                f"(dominant type={stats.dominant_type})."
            )
        return ColumnProfile(
            name=name,
            role=ColumnRole.UNKNOWN,
            confidence=0.0,
            reason=reason,
        )

    def _role_fraction(self, role: ColumnRole, stats: ColumnStats) -> float:
        if role == ColumnRole.LATITUDE:
            return stats.latitude_fraction
        elif role == ColumnRole.LONGITUDE:
            return stats.longitude_fraction
        elif role == ColumnRole.TEMPORAL:
            return stats.temporal_fraction
        elif role == ColumnRole.NUMERIC:
            return stats.numeric_fraction
        elif role == ColumnRole.GROUP_KEY:
            return stats.text_fraction
        return 0.0

    def suggest_mapping(self, profiles: Sequence[ColumnProfile]) -> ColumnMapping:
        """
        Pick the best column for each mapping field.

        Args:
            profiles: Output of infer()

        Returns:
            ColumnMapping with None for roles no column qualifies for
        """
        chosen: Dict[str, Optional[str]] = {}
        for key, role in self.MAPPING_ROLES:
            candidates = [
                (index, profile)
                for index, profile in enumerate(profiles)
                if profile.role == role
            ]
            if not candidates:
                chosen[key] = None
                continue
            _, best = max(
                candidates,
                key=lambda item: (item[1].matched_on == "name", item[1].confidence, -item[0]),
            )
            chosen[key] = best.name
        return ColumnMapping(**chosen)

    def get_role_distribution(self, profiles: Sequence[ColumnProfile]) -> dict:
        """
        Count columns per role.

        Args:
            profiles: Output of infer()

        Returns:
            Dict of role value → number of columns, every role present
        """
        distribution = {role.value: 0 for role in ColumnRole}
        for profile in profiles:
            distribution[profile.role.value] += 1
        return distribution
