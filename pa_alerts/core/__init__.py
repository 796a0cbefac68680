"""
Core domain models and pure functions for PA Alerts.

This module contains the domain models and pure business logic
that are independent of external I/O and infrastructure concerns.
"""

from .models import Alert, BoundingBox, Geometry, MultiPolygonGeometry, PolygonGeometry, RunResult, ViewWindow
from .normalize import to_alert, is_hazard_alert
from .geometry import merge_geometries, intersects_window

__all__ = [
    "Alert", "BoundingBox", "Geometry", "MultiPolygonGeometry", "PolygonGeometry",
    "RunResult", "ViewWindow", "to_alert", "is_hazard_alert",
    "merge_geometries", "intersects_window",
]
