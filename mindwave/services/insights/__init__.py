"""
Insights module - Behavioral patterns, mood predictions, and therapy support.
"""

from .predictor import InsightService, parse_patterns, parse_predictions
from .therapy import TherapyService, parse_recommendations

__all__ = ["InsightService", "TherapyService", "parse_patterns", "parse_predictions", "parse_recommendations"]
