"""Renderer package for switop dashboard frames."""

from .dashboard import DashboardRenderer, format_cluster, format_metric
from .models import DashboardData, Frame

__all__ = [
    "DashboardData",
    "DashboardRenderer",
    "Frame",
    "format_cluster",
    "format_metric",
]
