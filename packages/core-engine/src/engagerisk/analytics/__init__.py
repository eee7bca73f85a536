"""Usage analytics for the EngageRisk admin dashboard."""

from engagerisk.analytics.aggregates import compute_aggregates
from engagerisk.analytics.trends import analyze_trends, build_time_series

__all__ = ["analyze_trends", "build_time_series", "compute_aggregates"]
