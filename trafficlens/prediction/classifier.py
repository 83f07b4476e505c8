# ==============================================
# CongestionClassifier
# ==============================================
#
# PURPOSE:
#   Label every route Heavy / Moderate / Light / NoData from its
#   average congestion metric, using quartile thresholds computed
#   over the current set of route averages.
#
# QUARTILES:
#   Nearest-rank, no interpolation, over the sorted defined averages:
#     Q1 = sorted[floor(n * 0.25)]
#     Q3 = sorted[floor(n * 0.75)]
#   Kept deliberately simple; a different quantile method moves the
#   Heavy/Light boundaries on small datasets.
#
# RULES (in order):
#   1. avg undefined → NoData
#   2. avg >= Q3     → Heavy
#   3. avg <= Q1     → Light
#   4. otherwise     → Moderate
#
#   Thresholds are never cached: every classify() call recomputes
#   them from the averages it is given.
#
# ==============================================

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from trafficlens.aggregation.buckets import RouteAverage


class CongestionLabel(Enum):
    HEAVY = "Heavy"
    MODERATE = "Moderate"
    LIGHT = "Light"
    NO_DATA = "NoData"


@dataclass(frozen=True)
class PredictionResult:
    """Classification outcome for one route."""

    route: str
    avg: Optional[float]
    label: CongestionLabel

    def to_dict(self) -> Dict[str, Any]:
        return {"route": self.route, "avg": self.avg, "label": self.label.value}


def compute_quartiles(averages: Iterable[Optional[float]]) -> Optional[Tuple[float, float]]:
    """
    Nearest-rank lower and upper quartiles of the defined averages.

    Args:
        averages: Route averages; None / non-finite entries are ignored

    Returns:
        (Q1, Q3), or None when no average is defined
    """
    defined = sorted(
        float(avg) for avg in averages
        if isinstance(avg, (int, float)) and not isinstance(avg, bool) and math.isfinite(avg)
    )
    if not defined:
        return None
    n = len(defined)
    return defined[math.floor(n * 0.25)], defined[math.floor(n * 0.75)]


class CongestionClassifier:
    """
    Quartile-based congestion labelling over route averages.

    Every consumer (dashboard, admin views, exports) goes through this
    class so that the quartile math exists exactly once.
    """

    def classify(self, route_averages: Sequence[Any]) -> List[PredictionResult]:
        """
        Label each route.

        Args:
            route_averages: RouteAverage objects, {"route", "avg"} mappings
                            or (route, avg) pairs

        Returns:
            One PredictionResult per input item, in input order
        """
        items = [RouteAverage.coerce(item) for item in route_averages]
        quartiles = compute_quartiles(item.avg for item in items if item.has_average)

        results = []
        for item in items:
            if quartiles is None or not item.has_average:
                label = CongestionLabel.NO_DATA
            else:
                label = self.label_for(item.avg, quartiles)
            results.append(PredictionResult(route=item.route, avg=item.avg, label=label))
        return results

    def label_for(self, avg: float, quartiles: Tuple[float, float]) -> CongestionLabel:
        q1, q3 = quartiles
        # Heavy is checked first so a value equal to both Q1 and Q3 is Heavy
        if avg >= q3:
            return CongestionLabel.HEAVY
        if avg <= q1:
            return CongestionLabel.LIGHT
        return CongestionLabel.MODERATE

    def get_label_distribution(self, results: Iterable[PredictionResult]) -> Dict[str, int]:
        """
        Count routes per label.

        Returns:
            {"Heavy": n, "Moderate": n, "Light": n, "NoData": n}
        """
        distribution = {label.value: 0 for label in CongestionLabel}
        for result in results:
            distribution[result.label.value] += 1
        return distribution


def classify(route_averages: Sequence[Any]) -> List[PredictionResult]:
    return CongestionClassifier().classify(route_averages)
