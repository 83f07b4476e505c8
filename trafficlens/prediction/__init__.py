# ==============================================
# TOPIC 5: PREDICTION & RECOMMENDATION
# ==============================================
#
# Heuristic congestion labels and route recommendations derived
# from the per-route averages of the aggregation view.
#
# Modules:
# --------
# - classifier.py   → Quartile-based Heavy / Moderate / Light / NoData
# - recommender.py  → Lowest-average-first route ranking
#
# ==============================================

from .classifier import (
    CongestionClassifier,
    CongestionLabel,
    PredictionResult,
    classify,
    compute_quartiles,
)
from .recommender import RouteRecommender, recommend

__all__ = [
    "CongestionClassifier",
    "CongestionLabel",
    "PredictionResult",
    "classify",
    "compute_quartiles",
    "RouteRecommender",
    "recommend",
]
