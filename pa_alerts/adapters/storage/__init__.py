"""
Storage adapters for PA Alerts hexagonal architecture.

This module contains the process-lifetime geometry cache used
during zone resolution.
"""

from .geometry_cache import GeometryCache, NOT_RESOLVED

__all__ = ["GeometryCache", "NOT_RESOLVED"]
