"""
HTTP clients for VisionCast API consumers.
"""

from .dashboard import DashboardLoader, DashboardState, parse_dashboard

__all__ = ["DashboardLoader", "DashboardState", "parse_dashboard"]
