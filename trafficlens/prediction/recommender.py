# ==============================================
# RouteRecommender
# ==============================================
#
# PURPOSE:
#   Rank routes by average congestion metric (lower is better) and
#   return the best N as recommended routes.
#
#   - Only routes with a defined average take part.
#   - Ascending by average; ties broken by route name so the same
#     input always yields the same list.
#   - Fewer qualifying routes than N → all of them, never padded.
#
# ==============================================

from typing import Any, Dict, List, Optional, Sequence

from trafficlens.aggregation.buckets import RouteAverage
from .classifier import PredictionResult


class RouteRecommender:
    """Lowest-average-first route ranking."""

    def __init__(self, top_n: int = 3):
        self.top_n = top_n

    def rank(self, route_averages: Sequence[Any]) -> List[RouteAverage]:
        items = [RouteAverage.coerce(item) for item in route_averages]
        qualifying = [item for item in items if item.has_average]
        qualifying.sort(key=lambda item: (item.avg, item.route))
        return qualifying

    def recommend(self, route_averages: Sequence[Any], top_n: Optional[int] = None) -> List[str]:
        """
        Args:
            route_averages: RouteAverage objects, mappings or (route, avg) pairs
            top_n: How many routes to return (defaults to the instance's top_n)

        Returns:
            Route identifiers, best first
        """
        limit = self.top_n if top_n is None else top_n
        if limit <= 0:
            return []
        return [item.route for item in self.rank(route_averages)[:limit]]

    def describe(
        self,
        route_averages: Sequence[Any],
        predictions: Sequence[PredictionResult] = (),
        top_n: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Recommended routes with their average and congestion label, for display.
        """
        labels = {result.route: result.label.value for result in predictions}
        limit = self.top_n if top_n is None else top_n
        if limit <= 0:
            return []
        return [
            {
                "route": item.route,
                "avg": item.avg,
                "label": labels.get(item.route),
            }
            for item in self.rank(route_averages)[:limit]
        ]


def recommend(route_averages: Sequence[Any], top_n: int = 3) -> List[str]:
    return RouteRecommender(top_n).recommend(route_averages)
